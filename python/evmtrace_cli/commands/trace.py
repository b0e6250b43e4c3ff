"""Trace history and offline replay commands."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import List

from evmtrace.messages import ProtocolError

from .base import Command
from ..context import ViewerContext
from ..output import emit_error, emit_result, render_trace


class TraceCommand(Command):
    def __init__(self) -> None:
        super().__init__("trace", "Show the executed opcodes and log lines", aliases=("log",))
        self._parser = argparse.ArgumentParser(prog="trace", add_help=False)
        self._parser.add_argument("--tail", type=int, default=0, help="Only show the last N entries")

    def run(self, ctx: ViewerContext, argv: List[str]) -> int:
        args = self._parse(self._parser, argv)
        if args is None:
            return 1
        session = ctx.ensure_session(connect=False)
        entries = session.log.tail(args.tail) if args.tail > 0 else session.log.entries
        if ctx.json_output:
            emit_result(ctx, message="trace", data={"entries": [entry.as_dict() for entry in entries]})
            return 0
        render_trace(entries)
        return 0


class ReplayCommand(Command):
    def __init__(self) -> None:
        super().__init__("replay", "Load a recorded 'echoevm trace' JSON-lines file")
        self._parser = argparse.ArgumentParser(prog="replay", add_help=False)
        self._parser.add_argument("path", type=str, help="Trace file path")

    def run(self, ctx: ViewerContext, argv: List[str]) -> int:
        args = self._parse(self._parser, argv)
        if args is None:
            return 1
        path = Path(args.path).expanduser()
        session = ctx.ensure_session(connect=False)
        try:
            with path.open("rb") as handle:
                applied = session.replay(handle)
        except OSError as exc:
            emit_error(ctx, message=f"cannot read {path}: {exc}")
            return 1
        except ProtocolError as exc:
            emit_error(ctx, message=f"{path}: {exc}")
            return 1
        emit_result(
            ctx,
            message=f"Replayed {applied} message(s) from {path}",
            data={"path": str(path), "messages": applied, "steps": session.aggregator.steps},
        )
        return 0

"""Run and clear commands."""

from __future__ import annotations

import argparse
from typing import List

from .base import Command
from ..context import ViewerContext
from ..output import emit_error, emit_result


class RunCommand(Command):
    def __init__(self) -> None:
        super().__init__("run", "Ask the server to execute the program")
        self._parser = argparse.ArgumentParser(prog="run", add_help=False)
        self._parser.add_argument("--wait", type=float, default=0.0, help="Seconds to wait for the connection first")
        self._parser.add_argument("--follow", action="store_true", help="Block until the run reports its final result")
        self._parser.add_argument("--timeout", type=float, default=60.0, help="Seconds to wait with --follow (default 60)")

    def run(self, ctx: ViewerContext, argv: List[str]) -> int:
        args = self._parse(self._parser, argv)
        if args is None:
            return 1
        session = ctx.ensure_session()
        if args.wait > 0 and not session.is_open:
            session.wait_for(lambda: session.is_open, timeout=args.wait)
        if not session.request_run():
            emit_error(ctx, message="not connected; run request dropped", data={"state": session.state})
            return 2
        emit_result(ctx, message="Run requested", data={"result": "run_requested"})
        if args.follow and not session.wait_for(lambda: session.finished, timeout=args.timeout):
            emit_error(ctx, message=f"run did not finish within {args.timeout:g}s")
            return 1
        return 0


class ClearCommand(Command):
    def __init__(self) -> None:
        super().__init__("clear", "Clear the trace view", aliases=("reset",))

    def run(self, ctx: ViewerContext, argv: List[str]) -> int:
        session = ctx.ensure_session(connect=False)
        entry = session.clear()
        emit_result(ctx, message="View cleared", data={"result": "cleared", "status": entry.text})
        return 0

"""Connect command implementation."""

from __future__ import annotations

import argparse
from typing import List

from evmtrace.transport import TransportError

from .base import Command
from ..context import ViewerContext
from ..output import emit_error, emit_result


class ConnectCommand(Command):
    def __init__(self) -> None:
        super().__init__("connect", "Connect to the trace websocket", aliases=("open",))
        self._parser = argparse.ArgumentParser(prog="connect", add_help=False)
        self._parser.add_argument("--host", type=str, help="Server host")
        self._parser.add_argument("--port", type=int, help="Server port")
        self._parser.add_argument("--path", type=str, help="Websocket path (default /ws)")
        self._parser.add_argument("--wait", type=float, default=0.0, help="Seconds to wait for the connection to open")

    def run(self, ctx: ViewerContext, argv: List[str]) -> int:
        args = self._parse(self._parser, argv)
        if args is None:
            return 1
        retarget = any(value is not None for value in (args.host, args.port, args.path))
        if retarget:
            ctx.disconnect()
            if args.host:
                ctx.host = args.host
            if args.port:
                ctx.port = args.port
            if args.path:
                ctx.path = args.path
        try:
            session = ctx.ensure_session()
        except TransportError as exc:
            emit_error(ctx, message=f"connect failed: {exc}")
            return 2
        if args.wait > 0 and not session.wait_for(lambda: session.is_open, timeout=args.wait):
            emit_error(ctx, message=f"{ctx.url} did not open within {args.wait:g}s", data={"state": session.state})
            return 2
        emit_result(
            ctx,
            message=f"{session.status_text} ({ctx.url})",
            data={"url": ctx.url, "state": session.state},
        )
        return 0

"""Memory pane."""

from __future__ import annotations

import argparse
from typing import List

from .base import Command
from ..context import ViewerContext
from ..output import emit_result, render_memory


class MemoryCommand(Command):
    def __init__(self) -> None:
        super().__init__("mem", "Show the latest memory image", aliases=("memory", "x"))
        self._parser = argparse.ArgumentParser(prog="mem", add_help=False)
        self._parser.add_argument("--rows", type=int, default=0, help="Only show the first N rows")

    def run(self, ctx: ViewerContext, argv: List[str]) -> int:
        args = self._parse(self._parser, argv)
        if args is None:
            return 1
        session = ctx.ensure_session(connect=False)
        rows = session.log.display.memory_rows
        if args.rows > 0:
            rows = rows[: args.rows]
        if ctx.json_output:
            data = {"rows": [{"offset": row.offset, "label": row.label, "data": row.data} for row in rows]}
            emit_result(ctx, message="memory", data=data)
            return 0
        render_memory(rows)
        return 0

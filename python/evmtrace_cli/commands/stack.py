"""Operand stack pane."""

from __future__ import annotations

from typing import List

from .base import Command
from ..context import ViewerContext
from ..output import emit_result, render_stack


class StackCommand(Command):
    def __init__(self) -> None:
        super().__init__("stack", "Show the operand stack, top first", aliases=("st",))

    def run(self, ctx: ViewerContext, argv: List[str]) -> int:
        session = ctx.ensure_session(connect=False)
        view = session.log.display.stack
        if ctx.json_output:
            data = {
                "size": view.size,
                "rows": [{"index": row.index, "value": row.value} for row in view.rows],
            }
            emit_result(ctx, message="stack", data=data)
            return 0
        render_stack(view)
        return 0

"""Exit command."""

from __future__ import annotations

from typing import List

from .base import Command
from ..context import ViewerContext


class ExitCommand(Command):
    def __init__(self) -> None:
        super().__init__("exit", "Close the connection and leave", aliases=("quit", "q"))

    def run(self, ctx: ViewerContext, argv: List[str]) -> int:
        ctx.disconnect()
        raise SystemExit(0)

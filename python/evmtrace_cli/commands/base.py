"""Command base classes for the evmtrace CLI."""

from __future__ import annotations

import argparse
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from ..context import ViewerContext


@dataclass
class Command:
    """Abstract command description."""

    name: str
    description: str
    aliases: Sequence[str] = field(default_factory=tuple)

    def run(self, ctx: ViewerContext, argv: List[str]) -> int:
        raise NotImplementedError("Command must implement run()")

    def format_help(self) -> str:
        alias_text = f" (aliases: {', '.join(self.aliases)})" if self.aliases else ""
        return f"{self.name:<10} {self.description}{alias_text}"

    def _parse(self, parser: argparse.ArgumentParser, argv: List[str]) -> Optional[argparse.Namespace]:
        try:
            return parser.parse_args(argv)
        except SystemExit:
            return None

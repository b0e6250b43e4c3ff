"""Command line splitting for the REPL and ``-c`` mode."""

from __future__ import annotations

import shlex
from typing import List


class CommandParseError(ValueError):
    """Raised when a command line has unbalanced quoting."""


def split_command(line: str) -> List[str]:
    """Split ``line`` into argv tokens using POSIX shell rules."""
    if not line or not line.strip():
        return []
    try:
        return shlex.split(line, comments=False, posix=True)
    except ValueError as exc:
        raise CommandParseError(str(exc)) from exc

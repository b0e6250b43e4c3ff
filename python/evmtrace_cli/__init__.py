"""
evmtrace CLI package.

Terminal front-end for the echoevm web debugger stream: an interactive REPL
that prints trace entries as they arrive, plus a one-shot ``-c`` mode.  Use
the ``evmtrace`` console script or ``python -m evmtrace_cli.cli``.
"""

from __future__ import annotations

from .cli import main

__all__ = ["main"]
__version__ = "0.1.0"

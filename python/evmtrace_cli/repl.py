"""Interactive REPL for the evmtrace viewer."""

from __future__ import annotations

import logging
from typing import List, Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.patch_stdout import patch_stdout

from evmtrace.transport import TransportError

from .commands import CommandRegistry
from .completion import ViewerCompleter
from .context import ViewerContext
from .parser import CommandParseError, split_command

LOGGER = logging.getLogger("evmtrace_cli.repl")


class ViewerREPL:
    """prompt_toolkit loop that prints trace entries live while reading commands."""

    def __init__(
        self,
        ctx: ViewerContext,
        registry: CommandRegistry,
        *,
        history: Optional[InMemoryHistory] = None,
    ) -> None:
        self.ctx = ctx
        self.registry = registry
        self.history = history or InMemoryHistory()

    def run(self) -> int:
        session = PromptSession(
            "trace> ",
            history=self.history,
            completer=ViewerCompleter(self.registry),
            complete_while_typing=True,
        )
        buffer: List[str] = []
        with patch_stdout():
            try:
                self.ctx.ensure_session()
            except TransportError as exc:
                print(f"error: connect failed: {exc}")
            while True:
                try:
                    line = session.prompt()
                except (EOFError, KeyboardInterrupt):
                    print()
                    self.ctx.disconnect()
                    return 0
                if self._handle_multiline(buffer, line):
                    continue
                payload = " ".join(buffer) if buffer else line
                buffer.clear()
                self.dispatch(payload)

    def dispatch(self, line: str) -> Optional[int]:
        try:
            argv = split_command(line)
        except CommandParseError as exc:
            print(f"Parse error: {exc}")
            return None
        if not argv:
            return None
        cmd_name, *cmd_args = argv
        command = self.registry.get(cmd_name)
        if not command:
            print(f"Unknown command: {cmd_name}")
            return None
        try:
            return command.run(self.ctx, cmd_args)
        except SystemExit:
            raise
        except Exception as exc:  # pragma: no cover - defensive logging
            LOGGER.exception("command failed")
            print(f"Command '{cmd_name}' failed: {exc}")
            return None

    @staticmethod
    def _handle_multiline(buffer: List[str], line: str) -> bool:
        stripped = line.rstrip()
        if stripped.endswith("\\"):
            buffer.append(stripped[:-1])
            return True
        if buffer:
            buffer.append(stripped)
        return False

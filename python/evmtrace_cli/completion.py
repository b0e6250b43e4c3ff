"""prompt_toolkit completer for the evmtrace REPL."""

from __future__ import annotations

import shlex
from typing import Iterable, List

from prompt_toolkit.completion import CompleteEvent, Completer, Completion, PathCompleter
from prompt_toolkit.document import Document

from .commands import CommandRegistry

PATH_COMMANDS = {"replay"}


def _normalise_tokens(text: str) -> List[str]:
    if not text:
        return []
    try:
        tokens = shlex.split(text, posix=True)
    except ValueError:
        tokens = text.strip().split()
    if text[-1].isspace():
        tokens.append("")
    return tokens


class ViewerCompleter(Completer):
    """Complete command names, then file paths for ``replay``."""

    def __init__(self, registry: CommandRegistry) -> None:
        self.registry = registry
        self._path = PathCompleter(expanduser=True)

    def get_completions(self, document: Document, complete_event: CompleteEvent) -> Iterable[Completion]:
        tokens = _normalise_tokens(document.text_before_cursor)
        if len(tokens) <= 1:
            prefix = tokens[0] if tokens else ""
            for name in self.registry.names():
                if name.startswith(prefix):
                    yield Completion(name, start_position=-len(prefix))
            return
        command = self.registry.get(tokens[0])
        if command is None or command.name not in PATH_COMMANDS:
            return
        prefix = tokens[-1]
        sub_document = Document(prefix, cursor_position=len(prefix))
        yield from self._path.get_completions(sub_document, complete_event)

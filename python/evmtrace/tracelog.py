"""Append-only trace history and the display state derived from it."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple, Union

from .projectors import EMPTY_STACK, MemoryRow, StackView, project_memory, project_stack


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OpcodeEntry:
    pc: Optional[int]
    opcode_name: str

    kind = "opcode"

    def as_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "pc": self.pc, "opcode_name": self.opcode_name}


@dataclass(frozen=True)
class TextEntry:
    text: str
    is_error: bool = False

    kind = "text"

    def as_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "text": self.text, "is_error": self.is_error}


TraceEntry = Union[OpcodeEntry, TextEntry]
EntryCallback = Callable[[TraceEntry], None]
ResetCallback = Callable[["TraceLog"], None]


@dataclass
class DisplayState:
    """Current stack and memory panes."""

    stack: StackView = EMPTY_STACK
    memory_rows: Tuple[MemoryRow, ...] = ()

    def update_stack(self, stack: Optional[Sequence[str]]) -> StackView:
        self.stack = project_stack(stack)
        return self.stack

    def update_memory(self, memory_hex: Optional[str]) -> Tuple[MemoryRow, ...]:
        # each blob is a complete image
        self.memory_rows = project_memory(memory_hex)
        return self.memory_rows

    def clear(self) -> None:
        self.stack = EMPTY_STACK
        self.memory_rows = ()

    def as_dict(self) -> Dict[str, Any]:
        return {
            "stack_size": self.stack.size,
            "stack": [{"index": row.index, "value": row.value} for row in self.stack.rows],
            "memory": [{"offset": row.offset, "label": row.label, "data": row.data} for row in self.memory_rows],
        }


class TraceLog:
    """Rendered history for one run plus the current display state.

    Entries are only ever appended; :meth:`reset` is the single operation that
    discards history, and it always leaves exactly one text entry behind.
    """

    def __init__(self) -> None:
        self._entries: List[TraceEntry] = []
        self.display = DisplayState()
        self._on_entry: list[EntryCallback] = []
        self._on_reset: list[ResetCallback] = []

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[TraceEntry]:
        return iter(list(self._entries))

    @property
    def entries(self) -> Tuple[TraceEntry, ...]:
        return tuple(self._entries)

    def tail(self, count: int) -> Tuple[TraceEntry, ...]:
        if count <= 0:
            return ()
        return tuple(self._entries[-count:])

    def register_on_entry(self, callback: EntryCallback) -> None:
        self._on_entry.append(callback)

    def register_on_reset(self, callback: ResetCallback) -> None:
        self._on_reset.append(callback)

    def append_step(self, pc: Optional[int], opcode_name: str) -> OpcodeEntry:
        entry = OpcodeEntry(pc=pc, opcode_name=opcode_name)
        self._append(entry)
        return entry

    def append_log(self, text: str, is_error: bool = False) -> TextEntry:
        entry = TextEntry(text=text, is_error=is_error)
        self._append(entry)
        return entry

    def reset(self, status_text: Optional[str] = None) -> TextEntry:
        self._entries.clear()
        self.display.clear()
        for callback in list(self._on_reset):
            try:
                callback(self)
            except Exception:
                logger.exception("trace reset listener failed")
        return self.append_log(status_text or "")

    def as_dict(self) -> Dict[str, Any]:
        payload = self.display.as_dict()
        payload["entries"] = [entry.as_dict() for entry in self._entries]
        return payload

    def _append(self, entry: TraceEntry) -> None:
        self._entries.append(entry)
        for callback in list(self._on_entry):
            try:
                callback(entry)
            except Exception:
                logger.exception("trace entry listener failed")

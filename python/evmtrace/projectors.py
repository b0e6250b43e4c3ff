"""Pure display projections for stack and memory snapshots."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

MEMORY_ROW_BYTES = 32
MEMORY_ROW_HEX_CHARS = MEMORY_ROW_BYTES * 2


@dataclass(frozen=True)
class StackRow:
    index: int
    value: str


@dataclass(frozen=True)
class StackView:
    """Top-first stack rows labeled with their bottom-relative index."""

    size: int = 0
    rows: Tuple[StackRow, ...] = ()

    @property
    def size_label(self) -> str:
        return f"({self.size})"

    def values(self) -> list[str]:
        return [row.value for row in self.rows]


@dataclass(frozen=True)
class MemoryRow:
    offset: int
    data: str

    @property
    def label(self) -> str:
        return f"0x{self.offset:04x}"


EMPTY_STACK = StackView()


def project_stack(stack: Optional[Sequence[str]]) -> StackView:
    """Reorder a bottom-up stack so the most recent push comes first.

    Index 0 of ``stack`` is the bottom word; each row keeps that original index.
    ``None`` and empty input both give an empty view.
    """

    if not stack:
        return EMPTY_STACK
    top = len(stack) - 1
    rows = tuple(StackRow(index=top - pos, value=str(stack[top - pos])) for pos in range(len(stack)))
    return StackView(size=len(stack), rows=rows)


def project_memory(memory_hex: Optional[str]) -> Tuple[MemoryRow, ...]:
    """Split a contiguous hex image into 32-byte rows keyed by byte offset."""

    if not memory_hex:
        return ()
    return tuple(
        MemoryRow(offset=start // 2, data=memory_hex[start : start + MEMORY_ROW_HEX_CHARS])
        for start in range(0, len(memory_hex), MEMORY_ROW_HEX_CHARS)
    )

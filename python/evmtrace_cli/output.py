"""Output helpers for the evmtrace CLI."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, Dict, Iterable, Mapping, Optional, Sequence

from tabulate import tabulate

from evmtrace.projectors import MemoryRow, StackView
from evmtrace.tracelog import OpcodeEntry, TraceEntry

if TYPE_CHECKING:  # pragma: no cover
    from .context import ViewerContext


def _json_dump(payload: Mapping[str, Any]) -> str:
    return json.dumps(payload, indent=2, sort_keys=True)


def emit_result(ctx: "ViewerContext", *, message: str, data: Optional[Mapping[str, Any]] = None) -> None:
    """Emit a successful command result."""
    if ctx.json_output:
        payload: Dict[str, Any] = {"status": "ok"}
        if data is not None:
            payload["result"] = data
        else:
            payload["message"] = message
        print(_json_dump(payload))
    else:
        print(message)


def emit_error(ctx: "ViewerContext", *, message: str, data: Optional[Mapping[str, Any]] = None) -> None:
    """Emit an error message respecting JSON mode."""
    payload: Dict[str, Any] = {"status": "error", "error": message}
    if data:
        payload["details"] = dict(data)
    if ctx.json_output:
        print(_json_dump(payload))
    else:
        print(f"error: {message}")


def format_entry(entry: TraceEntry) -> str:
    if isinstance(entry, OpcodeEntry):
        pc = "?" if entry.pc is None else entry.pc
        return f"[{pc}] {entry.opcode_name}"
    if entry.is_error:
        return f"! {entry.text}"
    return entry.text


def render_trace(entries: Iterable[TraceEntry]) -> None:
    for entry in entries:
        print(format_entry(entry))


def render_stack(view: StackView) -> None:
    """Print the stack pane, top of stack first."""
    print(f"stack {view.size_label}")
    if not view.rows:
        return
    rows = [(f"{row.index}:", row.value) for row in view.rows]
    print(tabulate(rows, headers=["index", "value"], tablefmt="simple", disable_numparse=True))


def render_memory(rows: Sequence[MemoryRow]) -> None:
    print(f"memory ({len(rows)} row{'s' if len(rows) != 1 else ''})")
    if not rows:
        return
    table = [(f"{row.label}:", row.data) for row in rows]
    print(tabulate(table, headers=["offset", "data"], tablefmt="simple", disable_numparse=True))


__all__ = [
    "emit_result",
    "emit_error",
    "format_entry",
    "render_trace",
    "render_stack",
    "render_memory",
]

"""Frame codec and typed message helpers for evmtrace.

Inbound frames are JSON objects tagged by ``type`` (``start``, ``step`` or
``final``).  The only outbound frame is ``{"type": "run"}``.  Offline traces
written by ``echoevm trace`` use the same step objects, one per line, and can be
decoded with :func:`iter_trace_lines`.
"""

from __future__ import annotations

import json
import string
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, Mapping, Optional, Tuple, Union


MSG_START = "start"
MSG_STEP = "step"
MSG_FINAL = "final"
MSG_RUN = "run"

_HEX_DIGITS = frozenset(string.hexdigits)


class ProtocolError(ValueError):
    """Raised when a frame payload cannot be decoded into a message."""


def _to_int(value: Any, field_name: str) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ProtocolError(f"{field_name} must be an integer, got boolean")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text, 16 if text.lower().startswith("0x") else 10)
        except ValueError as exc:
            raise ProtocolError(f"{field_name} must be integer-compatible (got {value!r})") from exc
    raise ProtocolError(f"{field_name} must be integer-compatible (got {value!r})")


def _to_bool(value: Any, field_name: str) -> bool:
    if value is None:
        return False
    if not isinstance(value, bool):
        raise ProtocolError(f"{field_name} must be a boolean (got {value!r})")
    return value


def _to_stack(value: Any, field_name: str) -> Optional[Tuple[str, ...]]:
    if value is None:
        return None
    if not isinstance(value, (list, tuple)):
        raise ProtocolError(f"{field_name} must be a list")
    return tuple(str(item) for item in value)


def _to_hex(value: Any, field_name: str) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ProtocolError(f"{field_name} must be a hex string")
    if len(value) % 2:
        raise ProtocolError(f"{field_name} must have an even number of digits")
    if not _HEX_DIGITS.issuperset(value):
        raise ProtocolError(f"{field_name} contains non-hex characters")
    return value


@dataclass(frozen=True)
class Snapshot:
    """VM state captured before or after one instruction."""

    pc: Optional[int] = None
    opcode_name: str = ""
    stack: Optional[Tuple[str, ...]] = None
    data: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)


@dataclass
class BaseMessage:
    type: str
    data: Dict[str, Any] = field(default_factory=dict)


@dataclass
class StartMessage(BaseMessage):
    pass


@dataclass
class StepMessage(BaseMessage):
    pre: Optional[Snapshot] = None
    post: Optional[Snapshot] = None
    memory_hex: Optional[str] = None


@dataclass
class FinalMessage(BaseMessage):
    return_data_hex: str = ""
    reverted: bool = False


Message = Union[BaseMessage, StartMessage, StepMessage, FinalMessage]


def parse_snapshot(value: Any, field_name: str) -> Optional[Snapshot]:
    if value is None:
        return None
    if not isinstance(value, Mapping):
        raise ProtocolError(f"{field_name} must be an object")
    opcode_name = value.get("opcode_name")
    return Snapshot(
        pc=_to_int(value.get("pc"), f"{field_name}.pc"),
        opcode_name="" if opcode_name is None else str(opcode_name),
        stack=_to_stack(value.get("stack"), f"{field_name}.stack"),
        data=dict(value),
    )


def parse_message(raw: Mapping[str, Any]) -> Message:
    """Convert a decoded frame dictionary into a typed message.

    Unknown ``type`` values come back as a plain :class:`BaseMessage` so the
    dispatcher can report them; malformed known kinds raise
    :class:`ProtocolError`.
    """

    if not isinstance(raw, Mapping):
        raise ProtocolError("frame must be a JSON object")
    msg_type = str(raw.get("type") or "")
    data = dict(raw)

    if msg_type == MSG_START:
        return StartMessage(type=msg_type, data=data)
    if msg_type == MSG_STEP:
        return StepMessage(
            type=msg_type,
            data=data,
            pre=parse_snapshot(raw.get("pre"), "pre"),
            post=parse_snapshot(raw.get("post"), "post"),
            memory_hex=_to_hex(raw.get("memory_hex"), "memory_hex"),
        )
    if msg_type == MSG_FINAL:
        return_data = raw.get("return_data_hex")
        return FinalMessage(
            type=msg_type,
            data=data,
            return_data_hex="" if return_data is None else str(return_data),
            reverted=_to_bool(raw.get("reverted"), "reverted"),
        )
    return BaseMessage(type=msg_type, data=data)


def decode_frame(payload: Union[str, bytes, bytearray]) -> Message:
    """Decode one websocket frame (text or binary) into a message."""

    if isinstance(payload, (bytes, bytearray)):
        try:
            payload = bytes(payload).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ProtocolError(f"frame is not valid utf-8: {exc}") from exc
    try:
        raw = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise ProtocolError(f"invalid json: {exc.msg}") from exc
    if not isinstance(raw, dict):
        raise ProtocolError("frame must be a JSON object")
    return parse_message(raw)


def encode_run() -> str:
    return json.dumps({"type": MSG_RUN}, separators=(",", ":"))


def iter_trace_lines(lines: Iterable[Union[str, bytes]]) -> Iterator[Message]:
    """Yield messages from newline-delimited JSON trace output.

    Lines may be text or raw bytes.  Blank lines are skipped.  Errors, including
    bad UTF-8 surfacing from a text-mode file, are re-raised as
    :class:`ProtocolError` with the 1-based line number so a bad capture can be
    located.
    """

    iterator = iter(lines)
    lineno = 0
    while True:
        lineno += 1
        try:
            line = next(iterator)
        except StopIteration:
            return
        except UnicodeDecodeError as exc:
            raise ProtocolError(f"line {lineno}: not valid utf-8: {exc}") from exc
        text = line.strip()
        if not text:
            continue
        try:
            yield decode_frame(text)
        except ProtocolError as exc:
            raise ProtocolError(f"line {lineno}: {exc}") from exc

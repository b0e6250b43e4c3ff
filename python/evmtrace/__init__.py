"""
evmtrace - live execution-trace viewer toolkit for echoevm.

The echoevm web debugger pushes one JSON frame per executed instruction over a
websocket.  This package turns that stream into a render-ready view of the
program counter, operand stack and memory:

    messages.py    → frame codec and typed messages
    projectors.py  → stack / memory display projections
    tracelog.py    → append-only trace history and display state
    aggregator.py  → PRE/POST step correlation
    dispatcher.py  → routing by message kind
    transport.py   → websocket lifecycle and reconnect
    control.py     → the outbound run command
    session.py     → single owner wiring everything together

Front-ends (see ``evmtrace_cli``) only read from the session's log.
"""

from .messages import (  # noqa: F401
    BaseMessage,
    FinalMessage,
    ProtocolError,
    Snapshot,
    StartMessage,
    StepMessage,
    decode_frame,
    encode_run,
    iter_trace_lines,
    parse_message,
)
from .projectors import MemoryRow, StackRow, StackView, project_memory, project_stack  # noqa: F401
from .tracelog import DisplayState, OpcodeEntry, TextEntry, TraceLog  # noqa: F401
from .aggregator import StepAggregator  # noqa: F401
from .dispatcher import ProtocolDispatcher  # noqa: F401
from .transport import ConnectionManager, TransportConfig, TransportError  # noqa: F401
from .control import RunController  # noqa: F401
from .session import SessionConfig, TraceSession  # noqa: F401

__all__ = [
    "BaseMessage",
    "StartMessage",
    "StepMessage",
    "FinalMessage",
    "Snapshot",
    "ProtocolError",
    "decode_frame",
    "parse_message",
    "encode_run",
    "iter_trace_lines",
    "StackRow",
    "StackView",
    "MemoryRow",
    "project_stack",
    "project_memory",
    "DisplayState",
    "OpcodeEntry",
    "TextEntry",
    "TraceLog",
    "StepAggregator",
    "ProtocolDispatcher",
    "ConnectionManager",
    "TransportConfig",
    "TransportError",
    "RunController",
    "SessionConfig",
    "TraceSession",
]

__version__ = "0.1.0"

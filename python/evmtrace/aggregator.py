"""Correlate partial step snapshots into the displayed state."""

from __future__ import annotations

import logging
from typing import Optional

from .messages import Snapshot, StepMessage
from .tracelog import TraceLog


logger = logging.getLogger(__name__)


class StepAggregator:
    """Apply ``step`` messages to a :class:`TraceLog`.

    The producer may split one instruction into a PRE-only message followed by
    a POST-only message, or send both halves at once.  Halves are matched purely
    by arrival order; interleaved delivery across instructions is not detected.
    """

    def __init__(self, log: TraceLog) -> None:
        self.log = log
        self.pending: Optional[Snapshot] = None
        self.steps = 0

    def apply(self, message: StepMessage) -> None:
        pre, post = message.pre, message.post
        if pre is not None and post is None:
            self.log.append_step(pre.pc, pre.opcode_name)
            self.pending = pre
            self.steps += 1
        elif post is not None:
            self.pending = None

        snapshot = post if post is not None else pre
        if snapshot is not None:
            self.log.display.update_stack(snapshot.stack)

        if message.memory_hex is not None:
            self.log.display.update_memory(message.memory_hex)
        logger.debug(
            "step applied pc=%s op=%s stack=%d",
            snapshot.pc if snapshot else None,
            snapshot.opcode_name if snapshot else "",
            self.log.display.stack.size,
        )

    def reset(self) -> None:
        self.pending = None
        self.steps = 0

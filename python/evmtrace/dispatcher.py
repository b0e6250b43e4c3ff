"""Route decoded frames to the aggregator or run lifecycle handling."""

from __future__ import annotations

import logging
from typing import Optional, Union

from .aggregator import StepAggregator
from .messages import (
    FinalMessage,
    Message,
    ProtocolError,
    StartMessage,
    StepMessage,
    decode_frame,
)
from .tracelog import TraceLog


logger = logging.getLogger(__name__)

RUNNING_TEXT = "Running..."


class ProtocolDispatcher:
    """Stateless router from message kind to handler."""

    def __init__(self, log: TraceLog, aggregator: StepAggregator, *, running_text: str = RUNNING_TEXT) -> None:
        self.log = log
        self.aggregator = aggregator
        self.running_text = running_text

    def dispatch(self, message: Message) -> None:
        if isinstance(message, StepMessage):
            self.aggregator.apply(message)
        elif isinstance(message, StartMessage):
            self.log.reset(self.running_text)
        elif isinstance(message, FinalMessage):
            self.log.append_log(f"Execution Finished. Return: {message.return_data_hex}")
            if message.reverted:
                self.log.append_log("REVERTED", is_error=True)
        else:
            logger.debug("unknown message kind %r", message.type)
            suffix = f": {message.type}" if message.type else ""
            self.log.append_log(f"Unknown message type{suffix}", is_error=True)

    def dispatch_frame(self, payload: Union[str, bytes]) -> Optional[Message]:
        """Decode and dispatch one raw frame.

        Malformed frames are logged and dropped; ``None`` is returned for them so
        the caller can count the anomaly.
        """
        try:
            message = decode_frame(payload)
        except ProtocolError as exc:
            logger.warning("dropping malformed frame: %s", exc)
            return None
        self.dispatch(message)
        return message

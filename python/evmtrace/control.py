"""Outbound run command."""

from __future__ import annotations

import logging

from .messages import encode_run
from .tracelog import TraceLog
from .transport import ConnectionManager, TransportError


logger = logging.getLogger(__name__)

NOT_CONNECTED_TEXT = "Not connected"


class RunController:
    """Send the single ``run`` frame when the connection is open.

    The view is not cleared here; the producer's ``start`` frame does that.
    """

    def __init__(self, connection: ConnectionManager, log: TraceLog) -> None:
        self.connection = connection
        self.log = log
        self.sent = 0

    def request_run(self) -> bool:
        if not self.connection.is_open:
            self.log.append_log(NOT_CONNECTED_TEXT, is_error=True)
            return False
        try:
            self.connection.send(encode_run())
        except TransportError as exc:
            logger.warning("run request failed: %s", exc)
            self.log.append_log(NOT_CONNECTED_TEXT, is_error=True)
            return False
        self.sent += 1
        logger.info("run requested")
        return True

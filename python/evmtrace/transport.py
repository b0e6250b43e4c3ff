"""
Websocket transport for evmtrace.

Responsibilities:
    * Open the trace websocket (``ws://host:port/ws``) on a reader thread.
    * Turn socket activity into ordered :class:`TransportEvent` items on a
      single-consumer queue; the owner drains it with :meth:`ConnectionManager.process`.
    * Track connection state and schedule exactly one reconnect per disconnect.
    * Gate outbound sends on the connection being open.
"""

from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass
from typing import Any, Callable, Optional

from websockets.exceptions import ConnectionClosed, WebSocketException
from websockets.sync.client import connect as ws_connect


logger = logging.getLogger(__name__)

STATE_IDLE = "idle"
STATE_CONNECTING = "connecting"
STATE_OPEN = "open"
STATE_CLOSED = "closed"

EVENT_OPENED = "opened"
EVENT_FRAME = "frame"
EVENT_CLOSED = "closed"
EVENT_RECONNECT = "reconnect"


class TransportError(RuntimeError):
    """Raised when the transport cannot complete an operation."""


@dataclass
class TransportConfig:
    host: str = "127.0.0.1"
    port: int = 8080
    path: str = "/ws"
    secure: bool = False
    reconnect_delay: float = 2.0
    open_timeout: float = 5.0
    max_frame_size: Optional[int] = 2**24

    @property
    def url(self) -> str:
        scheme = "wss" if self.secure else "ws"
        path = self.path if self.path.startswith("/") else f"/{self.path}"
        return f"{scheme}://{self.host}:{self.port}{path}"


@dataclass(frozen=True)
class TransportEvent:
    kind: str
    attempt: int = 0
    payload: Any = None
    connection: Any = None
    error: Optional[BaseException] = None


Connector = Callable[[TransportConfig], Any]
Scheduler = Callable[[float, Callable[[], None]], None]


def websocket_connector(config: TransportConfig) -> Any:
    return ws_connect(config.url, open_timeout=config.open_timeout, max_size=config.max_frame_size)


def timer_scheduler(delay: float, callback: Callable[[], None]) -> None:
    timer = threading.Timer(delay, callback)
    timer.daemon = True
    timer.start()


class ConnectionManager:
    """Owns the socket lifecycle: idle -> connecting -> open -> closed -> connecting."""

    def __init__(
        self,
        config: Optional[TransportConfig] = None,
        *,
        events: Optional[queue.Queue] = None,
        connector: Optional[Connector] = None,
        scheduler: Optional[Scheduler] = None,
    ) -> None:
        self.config = config or TransportConfig()
        self.events: queue.Queue = events if events is not None else queue.Queue()
        self._connector = connector or websocket_connector
        self._scheduler = scheduler or timer_scheduler
        self._state_lock = threading.Lock()
        self._connect_lock = threading.Lock()
        self._state = STATE_IDLE
        self._attempt = 0
        self._conn: Any = None
        self._shutdown = False
        self._reader_thread: Optional[threading.Thread] = None
        self._on_state: list[Callable[[str], None]] = []
        self.reconnects_scheduled = 0

    #
    # State
    #
    @property
    def state(self) -> str:
        with self._state_lock:
            return self._state

    @property
    def is_open(self) -> bool:
        return self.state == STATE_OPEN

    @property
    def attempt(self) -> int:
        return self._attempt

    def register_on_state(self, callback: Callable[[str], None]) -> None:
        self._on_state.append(callback)

    #
    # Lifecycle
    #
    def connect(self) -> bool:
        """Start a connection attempt; returns False if one is already live."""
        with self._connect_lock:
            if self._shutdown:
                raise TransportError("transport closed")
            if self.state not in (STATE_IDLE, STATE_CLOSED):
                return False
            self._attempt += 1
            attempt = self._attempt
            self._set_state(STATE_CONNECTING)
            logger.info("connecting to %s (attempt %d)", self.config.url, attempt)
            thread = threading.Thread(
                target=self._reader_loop,
                args=(attempt,),
                name=f"evmtrace-reader-{attempt}",
                daemon=True,
            )
            self._reader_thread = thread
            thread.start()
            return True

    def shutdown(self) -> None:
        """Close the live connection for good; no reconnect follows."""
        self._shutdown = True
        conn = self._conn
        self._conn = None
        self._set_state(STATE_CLOSED)
        if conn is not None:
            self._close_quietly(conn)
        thread = self._reader_thread
        if thread and thread.is_alive() and thread is not threading.current_thread():
            thread.join(timeout=0.5)

    def send(self, payload: str) -> None:
        conn = self._conn
        if conn is None or not self.is_open:
            raise TransportError("not connected")
        try:
            conn.send(payload)
        except (OSError, WebSocketException) as exc:
            raise TransportError(f"send failed: {exc}") from exc

    #
    # Event processing (owner's dispatch loop only)
    #
    def process(self, event: TransportEvent) -> Any:
        """Apply one transport event; return the frame payload to dispatch, if any."""
        if event.kind == EVENT_RECONNECT:
            if not self._shutdown:
                self.connect()
            return None
        if event.attempt != self._attempt:
            logger.debug("dropping %s event from stale attempt %d", event.kind, event.attempt)
            if event.kind == EVENT_OPENED and event.connection is not None:
                self._close_quietly(event.connection)
            return None
        if event.kind == EVENT_OPENED:
            if self._shutdown:
                self._close_quietly(event.connection)
                return None
            self._conn = event.connection
            self._set_state(STATE_OPEN)
            return None
        if event.kind == EVENT_FRAME:
            state = self.state
            if state != STATE_OPEN:
                logger.debug("dropping frame received while %s", state)
                return None
            return event.payload
        if event.kind == EVENT_CLOSED:
            self._conn = None
            if self.state == STATE_CLOSED:
                return None
            if event.error is not None:
                logger.info("connection to %s lost: %s", self.config.url, event.error)
            self._set_state(STATE_CLOSED)
            self._schedule_reconnect()
            return None
        logger.debug("ignoring unknown transport event %r", event.kind)
        return None

    #
    # Internal helpers
    #
    def _reader_loop(self, attempt: int) -> None:
        try:
            conn = self._connector(self.config)
        except (OSError, WebSocketException) as exc:
            self._post(TransportEvent(EVENT_CLOSED, attempt, error=exc))
            return
        self._post(TransportEvent(EVENT_OPENED, attempt, connection=conn))
        error: Optional[BaseException] = None
        try:
            for frame in conn:
                self._post(TransportEvent(EVENT_FRAME, attempt, payload=frame))
        except (ConnectionClosed, OSError) as exc:
            error = exc
        finally:
            self._post(TransportEvent(EVENT_CLOSED, attempt, error=error))

    def _schedule_reconnect(self) -> None:
        if self._shutdown:
            return
        delay = self.config.reconnect_delay
        self.reconnects_scheduled += 1
        logger.info("reconnecting in %.1fs", delay)
        self._scheduler(delay, lambda: self._post(TransportEvent(EVENT_RECONNECT)))

    def _post(self, event: TransportEvent) -> None:
        self.events.put(event)

    def _set_state(self, new_state: str) -> None:
        with self._state_lock:
            if self._state == new_state:
                return
            old_state = self._state
            self._state = new_state
        logger.debug("transport state %s -> %s", old_state, new_state)
        for callback in list(self._on_state):
            try:
                callback(new_state)
            except Exception:
                logger.exception("transport state listener failed")

    @staticmethod
    def _close_quietly(conn: Any) -> None:
        try:
            conn.close()
        except (OSError, WebSocketException) as exc:
            logger.debug("close failed: %s", exc)

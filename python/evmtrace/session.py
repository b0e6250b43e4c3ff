"""Trace session: the single owner of the trace log and display state."""

from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Union

from .aggregator import StepAggregator
from .control import RunController
from .dispatcher import ProtocolDispatcher
from .messages import FinalMessage, Message, iter_trace_lines
from .tracelog import TextEntry, TraceLog
from .transport import (
    STATE_CLOSED,
    STATE_CONNECTING,
    STATE_IDLE,
    STATE_OPEN,
    ConnectionManager,
    TransportConfig,
    TransportEvent,
)


logger = logging.getLogger(__name__)

STATUS_TEXT = {
    STATE_IDLE: "Idle",
    STATE_CONNECTING: "Connecting...",
    STATE_OPEN: "Connected",
    STATE_CLOSED: "Disconnected",
}


@dataclass
class SessionConfig:
    ready_text: str = "Ready for execution..."
    running_text: str = "Running..."
    cleared_text: str = "Waiting for execution..."
    replay_text: str = "Replaying..."
    poll_interval: float = 0.05


class TraceSession:
    """Wire transport, dispatcher, aggregator and log behind one lock.

    Reader threads only enqueue transport events; :meth:`pump` drains them in
    order.  User actions (run, clear, replay) take the same lock, so exactly
    one mutator touches the log at a time.
    """

    def __init__(
        self,
        connection: Optional[ConnectionManager] = None,
        *,
        transport_config: Optional[TransportConfig] = None,
        session_config: Optional[SessionConfig] = None,
        log: Optional[TraceLog] = None,
    ) -> None:
        self.session_config = session_config or SessionConfig()
        self.connection = connection or ConnectionManager(transport_config or TransportConfig())
        self.log = log or TraceLog()
        self.aggregator = StepAggregator(self.log)
        self.dispatcher = ProtocolDispatcher(
            self.log,
            self.aggregator,
            running_text=self.session_config.running_text,
        )
        self.run_controller = RunController(self.connection, self.log)
        self.dropped_frames = 0
        self.finished = False

        self._lock = threading.RLock()
        self._changed = threading.Condition(self._lock)
        self._worker: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._on_status: list[Callable[[str], None]] = []

        self.log.register_on_reset(self._handle_reset)
        self.connection.register_on_state(self._handle_state)

    @property
    def state(self) -> str:
        return self.connection.state

    @property
    def status_text(self) -> str:
        return STATUS_TEXT.get(self.connection.state, self.connection.state)

    @property
    def is_open(self) -> bool:
        return self.connection.is_open

    def register_on_status(self, callback: Callable[[str], None]) -> None:
        self._on_status.append(callback)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Connect and start the background dispatch loop."""
        with self._changed:
            self.connection.connect()
        if self._worker and self._worker.is_alive():
            return
        self._stop_event.clear()
        self._worker = threading.Thread(target=self._run, name="evmtrace-dispatch", daemon=True)
        self._worker.start()

    def stop(self) -> None:
        self._stop_event.set()
        worker = self._worker
        if worker and worker.is_alive() and worker is not threading.current_thread():
            worker.join(timeout=0.5)
        self._worker = None
        self.connection.shutdown()

    def pump(self, timeout: float = 0.0) -> int:
        """Handle queued transport events in arrival order.

        With ``timeout`` > 0 the first read blocks up to that long; the rest of
        the queue is then drained without waiting.
        """
        handled = 0
        wait = timeout
        while True:
            try:
                if wait > 0:
                    event = self.connection.events.get(timeout=wait)
                else:
                    event = self.connection.events.get_nowait()
            except queue.Empty:
                break
            wait = 0.0
            with self._changed:
                self._handle_event(event)
                self._changed.notify_all()
            handled += 1
        return handled

    def wait_for(self, predicate: Callable[[], bool], timeout: Optional[float] = None) -> bool:
        """Block until ``predicate`` holds; requires the dispatch loop to be running."""
        with self._changed:
            return self._changed.wait_for(predicate, timeout)

    # ------------------------------------------------------------------
    # User actions
    # ------------------------------------------------------------------

    def request_run(self) -> bool:
        with self._changed:
            sent = self.run_controller.request_run()
            if sent:
                self.finished = False
            return sent

    def clear(self) -> TextEntry:
        with self._changed:
            entry = self.log.reset(self.session_config.cleared_text)
            self._changed.notify_all()
            return entry

    def replay(self, lines: Iterable[Union[str, bytes]]) -> int:
        """Feed a recorded newline-delimited trace through the dispatcher."""
        applied = 0
        with self._changed:
            self.log.reset(self.session_config.replay_text)
            for message in iter_trace_lines(lines):
                self._apply(message)
                applied += 1
            self._changed.notify_all()
        logger.info("replayed %d message(s)", applied)
        return applied

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _run(self) -> None:
        interval = self.session_config.poll_interval
        while not self._stop_event.is_set():
            self.pump(timeout=interval)
        self.pump()

    def _handle_event(self, event: TransportEvent) -> None:
        payload = self.connection.process(event)
        if payload is None:
            return
        message = self.dispatcher.dispatch_frame(payload)
        if message is None:
            self.dropped_frames += 1
        elif isinstance(message, FinalMessage):
            self.finished = True

    def _apply(self, message: Message) -> None:
        self.dispatcher.dispatch(message)
        if isinstance(message, FinalMessage):
            self.finished = True

    def _handle_reset(self, _log: TraceLog) -> None:
        self.aggregator.reset()
        self.finished = False

    def _handle_state(self, state: str) -> None:
        with self._changed:
            if state == STATE_OPEN:
                self.log.reset(self.session_config.ready_text)
            self._changed.notify_all()
        text = STATUS_TEXT.get(state, state)
        logger.info("status: %s", text)
        for callback in list(self._on_status):
            try:
                callback(text)
            except Exception:
                logger.exception("status listener failed")

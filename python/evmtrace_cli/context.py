"""Viewer context shared by the CLI, REPL and commands."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Optional

from evmtrace.session import TraceSession
from evmtrace.tracelog import TraceEntry
from evmtrace.transport import STATE_IDLE, TransportConfig

from .output import format_entry

LOGGER = logging.getLogger("evmtrace_cli.context")


@dataclass
class ViewerContext:
    """Holds connection settings and the lazily created trace session."""

    host: str = "127.0.0.1"
    port: int = 8080
    path: str = "/ws"
    reconnect_delay: float = 2.0
    json_output: bool = False
    follow: bool = True
    _session: Optional[TraceSession] = field(default=None, init=False, repr=False)

    def transport_config(self) -> TransportConfig:
        return TransportConfig(
            host=self.host,
            port=self.port,
            path=self.path,
            reconnect_delay=self.reconnect_delay,
        )

    @property
    def url(self) -> str:
        return self.transport_config().url

    def ensure_session(self, *, connect: bool = True) -> TraceSession:
        """Create the session if needed and, unless told otherwise, start it.

        A session that already dropped its connection is left alone; its
        scheduled reconnect brings it back.
        """
        if self._session is None:
            self._session = TraceSession(transport_config=self.transport_config())
            if self.follow:
                self._attach_follow(self._session)
        if connect and self._session.state == STATE_IDLE:
            self._session.start()
        return self._session

    @property
    def session(self) -> Optional[TraceSession]:
        return self._session

    def disconnect(self) -> None:
        session = self._session
        if not session:
            return
        try:
            session.stop()
        except Exception as exc:
            LOGGER.debug("session stop failed: %s", exc)
        self._session = None

    def _attach_follow(self, session: TraceSession) -> None:
        session.log.register_on_entry(self._print_entry)
        session.register_on_status(self._print_status)

    def _print_entry(self, entry: TraceEntry) -> None:
        if self.json_output:
            print(json.dumps(entry.as_dict(), sort_keys=True))
        else:
            print(format_entry(entry))

    def _print_status(self, text: str) -> None:
        if self.json_output:
            print(json.dumps({"status": text}))
        else:
            print(f"[{text}]")

"""Tests for the trace session wiring and run lifecycle."""

from __future__ import annotations

import json

import pytest

from evmtrace.messages import ProtocolError
from evmtrace.session import SessionConfig, TraceSession
from evmtrace.tracelog import OpcodeEntry, TextEntry
from evmtrace.transport import STATE_CLOSED, STATE_CONNECTING, ConnectionManager, TransportConfig
from trace_stubs import FakeConnector, ManualScheduler, pump_until, step


def _connect(session, connector):
    count = len(connector.connections)
    session.connection.connect()
    assert pump_until(session, lambda: session.is_open)
    assert len(connector.connections) == count + 1
    return connector.latest


def _texts(session):
    return [entry.text if isinstance(entry, TextEntry) else entry.opcode_name for entry in session.log]


def test_open_resets_to_ready(session, connector):
    session.log.append_log("stale")
    statuses = []
    session.register_on_status(statuses.append)
    _connect(session, connector)
    assert session.log.entries == (TextEntry("Ready for execution..."),)
    assert session.status_text == "Connected"
    assert statuses == ["Connecting...", "Connected"]


def test_full_run(session, connector):
    conn = _connect(session, connector)
    assert session.request_run()
    assert conn.sent == ['{"type":"run"}']

    conn.push({"type": "start"})
    conn.push(step(pre={"pc": 0, "opcode_name": "PUSH1", "stack": []}))
    conn.push(step(post={"pc": 2, "opcode_name": "PUSH1", "stack": ["0x01"]}))
    conn.push(step(pre={"pc": 2, "opcode_name": "MSTORE", "stack": ["0x01", "0x00"]}))
    conn.push(step(post={"pc": 3, "opcode_name": "MSTORE", "stack": []}, memory_hex="00" * 31 + "01"))
    conn.push({"type": "final", "return_data_hex": "01", "reverted": False})
    assert pump_until(session, lambda: session.finished)

    assert session.log.entries == (
        TextEntry("Running..."),
        OpcodeEntry(0, "PUSH1"),
        OpcodeEntry(2, "MSTORE"),
        TextEntry("Execution Finished. Return: 01"),
    )
    assert session.log.display.stack.size == 0
    assert [row.label for row in session.log.display.memory_rows] == ["0x0000"]
    assert session.aggregator.steps == 2


def test_run_when_not_connected(session):
    assert session.request_run() is False
    assert session.log.entries == (TextEntry("Not connected", is_error=True),)


def test_malformed_frame_counted_and_session_continues(session, connector):
    conn = _connect(session, connector)
    conn.push("{garbage")
    conn.push(step(pre={"pc": 0, "opcode_name": "STOP"}))
    assert pump_until(session, lambda: len(session.log) == 2)
    assert session.dropped_frames == 1
    assert session.log.entries[-1] == OpcodeEntry(0, "STOP")
    assert session.is_open


def test_drop_and_reconnect(session, connector, scheduler):
    conn = _connect(session, connector)
    conn.push({"type": "start"})
    conn.push(step(pre={"pc": 0, "opcode_name": "PUSH1"}))
    conn.drop()
    assert pump_until(session, lambda: session.state == STATE_CLOSED)
    assert session.status_text == "Disconnected"
    assert _texts(session) == ["Running...", "PUSH1"]
    assert [delay for delay, _ in scheduler.pending] == [2.0]

    scheduler.fire()
    assert pump_until(session, lambda: session.is_open)
    assert len(connector.connections) == 2
    assert session.log.entries == (TextEntry("Ready for execution..."),)
    assert session.aggregator.pending is None
    assert session.request_run()
    assert connector.latest.sent == ['{"type":"run"}']


def test_clear_resets_view(session, connector):
    conn = _connect(session, connector)
    conn.push(step(pre={"pc": 0, "opcode_name": "PUSH1", "stack": ["0x01"]}))
    assert pump_until(session, lambda: len(session.log) == 2)
    entry = session.clear()
    assert entry == TextEntry("Waiting for execution...")
    assert session.log.entries == (entry,)
    assert session.log.display.stack.size == 0


def test_replay_feeds_dispatcher(session):
    lines = [
        json.dumps({"type": "start"}),
        json.dumps(step(pre={"pc": 0, "opcode_name": "PUSH1", "stack": []})),
        json.dumps(step(post={"pc": 2, "opcode_name": "PUSH1", "stack": ["0x2a"]})),
        "",
        json.dumps({"type": "final", "return_data_hex": "2a", "reverted": True}),
    ]
    assert session.replay(lines) == 4
    assert session.finished
    assert _texts(session) == ["Running...", "PUSH1", "Execution Finished. Return: 2a", "REVERTED"]
    assert session.log.display.stack.values() == ["0x2a"]


def test_replay_without_start_keeps_replay_banner(session):
    session.replay([json.dumps(step(pre={"pc": 5, "opcode_name": "JUMPDEST"}))])
    assert _texts(session) == ["Replaying...", "JUMPDEST"]


def test_replay_stops_at_bad_line(session):
    with pytest.raises(ProtocolError, match="line 2"):
        session.replay([json.dumps({"type": "start"}), "nope"])


def test_custom_texts():
    connector = FakeConnector()
    manager = ConnectionManager(TransportConfig(), connector=connector, scheduler=ManualScheduler())
    session = TraceSession(manager, session_config=SessionConfig(ready_text="ready", cleared_text="cleared"))
    try:
        session.connection.connect()
        assert session.state == STATE_CONNECTING
        assert pump_until(session, lambda: session.is_open)
        assert _texts(session) == ["ready"]
        session.clear()
        assert _texts(session) == ["cleared"]
    finally:
        session.stop()


def test_background_worker_and_wait_for(session, connector):
    session.start()
    assert session.wait_for(lambda: session.is_open, timeout=2.0)
    assert session.request_run()
    connector.latest.push({"type": "start"})
    connector.latest.push({"type": "final", "return_data_hex": ""})
    assert session.wait_for(lambda: session.finished, timeout=2.0)
    session.stop()
    assert session.state == STATE_CLOSED


def test_run_while_closed_sends_nothing(session, connector):
    conn = _connect(session, connector)
    conn.drop()
    assert pump_until(session, lambda: session.state == STATE_CLOSED)
    before = len(session.log)
    assert session.request_run() is False
    assert conn.sent == []
    assert len(session.log) == before + 1
    assert session.log.entries[-1] == TextEntry("Not connected", is_error=True)


def test_replay_text_file_with_bad_utf8(session, tmp_path):
    capture = tmp_path / "bad.ndjson"
    capture.write_bytes(b'{"type":"start"}\n\xff\xfe\n')
    with capture.open("r", encoding="utf-8") as handle:
        with pytest.raises(ProtocolError, match="not valid utf-8"):
            session.replay(handle)

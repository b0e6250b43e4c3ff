"""End-to-end run against a local websockets server."""

from __future__ import annotations

import json
import threading

import pytest

from websockets.sync.server import serve

from evmtrace.session import TraceSession
from evmtrace.tracelog import OpcodeEntry, TextEntry
from evmtrace.transport import TransportConfig


def _handler(websocket):
    for raw in websocket:
        if json.loads(raw).get("type") != "run":
            continue
        websocket.send(json.dumps({"type": "start"}))
        websocket.send(json.dumps({"type": "step", "pre": {"pc": 0, "opcode_name": "PUSH1", "stack": []}}))
        websocket.send(json.dumps({"type": "step", "post": {"pc": 2, "opcode_name": "PUSH1", "stack": ["0x2a"]}}))
        websocket.send(
            json.dumps(
                {
                    "type": "step",
                    "pre": {"pc": 2, "opcode_name": "STOP", "stack": ["0x2a"]},
                    "memory_hex": "00" * 32,
                }
            )
        )
        websocket.send(json.dumps({"type": "final", "return_data_hex": "2a", "reverted": False}))


@pytest.fixture
def server():
    ws_server = serve(_handler, "127.0.0.1", 0)
    thread = threading.Thread(target=ws_server.serve_forever, daemon=True)
    thread.start()
    yield ws_server
    ws_server.shutdown()
    thread.join(timeout=2.0)


def test_run_over_real_websocket(server):
    port = server.socket.getsockname()[1]
    session = TraceSession(transport_config=TransportConfig(port=port, reconnect_delay=0.2))
    try:
        session.start()
        assert session.wait_for(lambda: session.is_open, timeout=5.0)
        assert session.log.entries == (TextEntry("Ready for execution..."),)
        assert session.request_run()
        assert session.wait_for(lambda: session.finished, timeout=5.0)
        assert session.log.entries == (
            TextEntry("Running..."),
            OpcodeEntry(0, "PUSH1"),
            OpcodeEntry(2, "STOP"),
            TextEntry("Execution Finished. Return: 2a"),
        )
        assert session.log.display.stack.values() == ["0x2a"]
        assert [row.label for row in session.log.display.memory_rows] == ["0x0000"]
    finally:
        session.stop()

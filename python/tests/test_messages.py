"""Unit tests for the evmtrace frame codec."""

from __future__ import annotations

import json

import pytest

from evmtrace.messages import (
    BaseMessage,
    FinalMessage,
    ProtocolError,
    StartMessage,
    StepMessage,
    decode_frame,
    encode_run,
    iter_trace_lines,
    parse_message,
)


def test_decode_step_with_both_snapshots():
    frame = json.dumps(
        {
            "type": "step",
            "pre": {"pc": 4, "opcode_name": "ADD", "stack": ["0x01", "0x02"]},
            "post": {"pc": 5, "opcode_name": "ADD", "stack": ["0x03"]},
            "memory_hex": "00ff",
        }
    )
    message = decode_frame(frame)
    assert isinstance(message, StepMessage)
    assert message.pre.pc == 4
    assert message.pre.stack == ("0x01", "0x02")
    assert message.post.opcode_name == "ADD"
    assert message.post.stack == ("0x03",)
    assert message.memory_hex == "00ff"


def test_decode_accepts_bytes_and_hex_pc():
    message = decode_frame(b'{"type":"step","pre":{"pc":"0x1a","opcode_name":"JUMPDEST"}}')
    assert isinstance(message, StepMessage)
    assert message.pre.pc == 26
    assert message.pre.stack is None
    assert message.post is None
    assert message.memory_hex is None


def test_start_and_final_messages():
    assert isinstance(decode_frame('{"type":"start"}'), StartMessage)
    final = decode_frame('{"type":"final","return_data_hex":"2a","reverted":true}')
    assert isinstance(final, FinalMessage)
    assert final.return_data_hex == "2a"
    assert final.reverted is True


def test_final_defaults():
    final = parse_message({"type": "final"})
    assert isinstance(final, FinalMessage)
    assert final.return_data_hex == ""
    assert final.reverted is False


def test_unknown_kind_is_base_message():
    message = parse_message({"type": "heartbeat", "seq": 3})
    assert type(message) is BaseMessage
    assert message.type == "heartbeat"
    assert message.data["seq"] == 3


@pytest.mark.parametrize(
    "payload",
    [
        "not json",
        "[1, 2, 3]",
        b"\xff\xfe",
        '{"type":"step","pre":{"pc":true}}',
        '{"type":"step","pre":{"pc":"zz"}}',
        '{"type":"step","pre":{"stack":"0x01"}}',
        '{"type":"step","pre":[]}',
        '{"type":"step","memory_hex":"abc"}',
        '{"type":"step","memory_hex":"zz"}',
        '{"type":"final","return_data_hex":"","reverted":"false"}',
        '{"type":"final","reverted":1}',
    ],
)
def test_malformed_frames_raise_protocol_error(payload):
    with pytest.raises(ProtocolError):
        decode_frame(payload)


def test_encode_run():
    assert json.loads(encode_run()) == {"type": "run"}
    assert encode_run() == '{"type":"run"}'


def test_iter_trace_lines_skips_blank_lines():
    lines = [
        '{"type":"start"}\n',
        "\n",
        '{"type":"step","pre":{"pc":0,"opcode_name":"STOP","stack":[]}}\n',
    ]
    messages = list(iter_trace_lines(lines))
    assert [m.type for m in messages] == ["start", "step"]


def test_iter_trace_lines_reports_line_number():
    lines = ['{"type":"start"}', "", "{broken"]
    with pytest.raises(ProtocolError, match="line 3"):
        list(iter_trace_lines(lines))


def test_final_reverted_false_is_not_reverted():
    assert decode_frame('{"type":"final","reverted":false}').reverted is False


def test_iter_trace_lines_accepts_bytes_and_reports_bad_utf8():
    lines = [b'{"type":"start"}\n', b"\xff\xfe\n"]
    with pytest.raises(ProtocolError, match="line 2: frame is not valid utf-8"):
        list(iter_trace_lines(lines))

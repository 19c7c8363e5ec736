import json

import pytest

from thrive_stream._sse import encode_sse_event, iter_sse_events_from_text, parse_sse_message
from thrive_stream.events import (
    CompletedEvent,
    DeltaEvent,
    DoneEvent,
    ErrorEvent,
    ThreadCreatedEvent,
)


def test_parse_thread_created():
    event = parse_sse_message('data: {"type":"thread_created","threadId":"thread_123"}')

    assert isinstance(event, ThreadCreatedEvent)
    assert event.thread_id == "thread_123"


def test_parse_delta():
    event = parse_sse_message('data: {"type":"delta","content":"Hello"}')

    assert isinstance(event, DeltaEvent)
    assert event.content == "Hello"


def test_parse_keeps_lone_surrogate_escape():
    event = parse_sse_message('data: {"type":"delta","content":"a\\ud800b"}')

    assert isinstance(event, DeltaEvent)
    assert event.content == "a\ud800b"


def test_parse_completed_with_full_response():
    full_response = {
        "greeting": "It's great that you're taking steps toward a healthier routine! 🌟",
        "attentionRequired": None,
        "actionItems": [],
        "questions": [],
    }
    payload = {"type": "completed", "content": json.dumps(full_response), "threadId": "thread_123"}

    event = parse_sse_message(f"data: {json.dumps(payload)}")

    assert isinstance(event, CompletedEvent)
    assert json.loads(event.content) == full_response
    assert event.thread_id == "thread_123"


def test_parse_completed_without_thread_id():
    event = parse_sse_message('data: {"type":"completed","content":"{}"}')

    assert isinstance(event, CompletedEvent)
    assert event.thread_id is None


def test_parse_error_reads_error_field():
    event = parse_sse_message('data: {"type":"error","error":"Run failed"}')

    assert isinstance(event, ErrorEvent)
    assert event.message == "Run failed"


def test_parse_done_sentinel():
    assert isinstance(parse_sse_message("data: [DONE]"), DoneEvent)


def test_parse_done_json_payload():
    assert isinstance(parse_sse_message('data: {"type":"done"}'), DoneEvent)


@pytest.mark.parametrize(
    "line",
    [
        "",
        "invalid",
        ": keep-alive",
        "data:{\"type\":\"delta\",\"content\":\"x\"}",
        "data: invalid json",
        "data: {\"type\":\"delta\",\"content\":",
        "data: [\"not\", \"an\", \"object\"]",
        "data: {\"type\":\"run_started\"}",
        "data: {\"content\":\"no type\"}",
        "data: {\"type\":\"thread_created\"}",
        "data: {\"type\":\"delta\",\"content\":42}",
        "data:  [DONE]",
        "event: message",
    ],
)
def test_parse_returns_none_for_noise(line):
    assert parse_sse_message(line) is None


def test_parse_deeply_nested_payload_is_noise():
    assert parse_sse_message("data: " + "[" * 100_000 + "]" * 100_000) is None


def test_parse_ignores_extra_keys():
    event = parse_sse_message('data: {"type":"delta","content":"a","index":3}')

    assert event == DeltaEvent(content="a")


def test_encode_uses_wire_names():
    frame = encode_sse_event(CompletedEvent(content='{"a":1}', thread_id="t1"))

    assert frame == 'data: {"type":"completed","content":"{\\"a\\":1}","threadId":"t1"}\n\n'


def test_encode_done_and_error():
    assert encode_sse_event(DoneEvent()) == "data: [DONE]\n\n"
    assert encode_sse_event(ErrorEvent(message="Stream error")) == 'data: {"type":"error","error":"Stream error"}\n\n'


def test_encode_omits_missing_thread_id():
    frame = encode_sse_event(CompletedEvent(content="x"))

    assert "threadId" not in frame


def test_encoded_frame_decodes_back():
    event = ThreadCreatedEvent(thread_id="thread_abc")
    line = encode_sse_event(event).rstrip("\n")

    assert parse_sse_message(line) == event


def test_iter_sse_events():
    text = "data: {\"type\":\"delta\",\"content\":\"a\"}\n\n\ndata: [DONE]\n\n"
    events = list(iter_sse_events_from_text(text))

    assert events[0] == DeltaEvent(content="a")
    assert isinstance(events[1], DoneEvent)


def test_iter_sse_events_handles_crlf_and_noise():
    text = ": ping\r\ndata: {\"type\":\"thread_created\",\"threadId\":\"t9\"}\r\n\r\ndata: nope\r\n"

    events = list(iter_sse_events_from_text(text))

    assert events == [ThreadCreatedEvent(thread_id="t9")]


def test_iter_sse_events_keeps_line_separator_inside_json():
    payload = json.dumps({"type": "delta", "content": "a\u2028b"}, ensure_ascii=False)

    events = list(iter_sse_events_from_text(f"data: {payload}\n\n"))

    assert events == [DeltaEvent(content="a\u2028b")]

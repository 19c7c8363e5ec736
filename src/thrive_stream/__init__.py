from __future__ import annotations

from thrive_stream._client import StreamResult, aconsume_response, consume_response
from thrive_stream._config import FieldNames
from thrive_stream._errors import AssistantRunError, StreamAPIError, ThriveStreamError
from thrive_stream._sse import encode_sse_event, iter_sse_events_from_text, parse_sse_message
from thrive_stream.events import (
    CompletedEvent,
    DeltaEvent,
    DoneEvent,
    ErrorEvent,
    StreamEvent,
    ThreadCreatedEvent,
)
from thrive_stream.extract import (
    ExtractionResult,
    FieldReader,
    ParsedStep,
    attempt_partial_parse,
    extract_partial_step,
    extract_sections,
    parse_steps_progressive,
)
from thrive_stream.session import StreamSession

__all__ = [
    "AssistantRunError",
    "CompletedEvent",
    "DeltaEvent",
    "DoneEvent",
    "ErrorEvent",
    "ExtractionResult",
    "FieldNames",
    "FieldReader",
    "ParsedStep",
    "StreamAPIError",
    "StreamEvent",
    "StreamResult",
    "StreamSession",
    "ThreadCreatedEvent",
    "ThriveStreamError",
    "aconsume_response",
    "attempt_partial_parse",
    "consume_response",
    "encode_sse_event",
    "extract_partial_step",
    "extract_sections",
    "iter_sse_events_from_text",
    "parse_sse_message",
    "parse_steps_progressive",
]

__version__ = "0.1.0"

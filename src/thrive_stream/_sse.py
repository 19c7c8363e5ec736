"""
Line-oriented decoder for the assistant Server-Sent Events (SSE) stream.
Each meaningful line looks like `data: <json-or-sentinel>`; anything else is noise.
"""

from __future__ import annotations

import json
from typing import Iterator

from pydantic import ValidationError

from thrive_stream.events import (
    DONE_SENTINEL,
    STREAM_EVENT_ADAPTER,
    DoneEvent,
    StreamEvent,
)

DATA_PREFIX = "data: "


def parse_sse_message(line: str) -> StreamEvent | None:
    """
    Decode a single SSE line into a stream event.

    Args:
        line: One raw protocol line, without its trailing newline.

    Returns:
        The decoded event, or None when the line is blank, a comment, lacks the
        `data: ` prefix, carries malformed JSON or an unknown `type`.
    """
    if not line.startswith(DATA_PREFIX):
        return None

    payload = line[len(DATA_PREFIX):]
    if payload == DONE_SENTINEL:
        return DoneEvent()

    try:
        # json.loads acepta surrogates sueltos (\ud800) que validate_json rechaza.
        data = json.loads(payload)
    except (ValueError, RecursionError):
        return None

    try:
        return STREAM_EVENT_ADAPTER.validate_python(data)
    except ValidationError:
        return None


def encode_sse_event(event: StreamEvent) -> str:
    """
    Render an event as a `data: ...` frame terminated by a blank line.

    Args:
        event: The event to serialize; wire field names are used.

    Returns:
        The SSE frame text.
    """
    if isinstance(event, DoneEvent):
        return f"{DATA_PREFIX}{DONE_SENTINEL}\n\n"
    return f"{DATA_PREFIX}{event.model_dump_json(by_alias=True, exclude_none=True)}\n\n"


def split_sse_lines(text: str) -> list[str]:
    # Solo "\n" separa líneas: splitlines() también corta en U+2028 dentro del JSON.
    return [ln.rstrip("\r") for ln in text.split("\n")]


def iter_sse_events_from_text(text: str) -> Iterator[StreamEvent]:
    """
    Parse every event found in a buffered SSE body.

    Unlike a session, this does not stop at `[DONE]`; the sentinel is yielded
    like any other event.

    Args:
        text: The raw string containing one or multiple SSE frames.

    Yields:
        Decoded events in arrival order; noise lines are skipped.
    """
    for line in split_sse_lines(text):
        event = parse_sse_message(line)
        if event is not None:
            yield event

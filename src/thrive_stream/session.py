from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional

from thrive_stream._config import debug_enabled
from thrive_stream._sse import parse_sse_message, split_sse_lines
from thrive_stream.events import (
    CompletedEvent,
    DeltaEvent,
    DoneEvent,
    ErrorEvent,
    StreamEvent,
    ThreadCreatedEvent,
)

ThreadCreatedCallback = Callable[[str], None]
DeltaCallback = Callable[[str], None]
CompleteCallback = Callable[[str, Optional[str]], None]
ErrorCallback = Callable[[str], None]


class StreamSession:
    """
    Stateful dispatcher for one assistant stream (one chat turn).

    Lines are fed one at a time through `process_message`; each decoded event
    triggers at most one registered callback. Delta fragments are appended to
    an accumulator, and `[DONE]` latches the session so trailing lines are
    ignored. A session is owned by a single caller; concurrent turns need
    separate instances.

    Callbacks are plain attributes and can be replaced at any time:
        session = StreamSession()
        session.on_delta = lambda fragment: ...
    """

    def __init__(
        self,
        *,
        on_thread_created: ThreadCreatedCallback | None = None,
        on_delta: DeltaCallback | None = None,
        on_complete: CompleteCallback | None = None,
        on_error: ErrorCallback | None = None,
    ) -> None:
        self.on_thread_created = on_thread_created
        self.on_delta = on_delta
        self.on_complete = on_complete
        self.on_error = on_error
        self._accumulated_content = ""
        self._done = False
        self._debug = debug_enabled()

    @property
    def accumulated_content(self) -> str:
        return self._accumulated_content

    @property
    def done(self) -> bool:
        return self._done

    def get_accumulated_content(self) -> str:
        return self._accumulated_content

    def is_done(self) -> bool:
        return self._done

    def reset(self) -> None:
        """Clear the accumulator and the done latch so the session can serve another turn."""
        self._accumulated_content = ""
        self._done = False

    def process_message(self, line: str) -> StreamEvent | None:
        """
        Decode one SSE line and dispatch it.

        Args:
            line: A raw protocol line.

        Returns:
            The decoded event, or None for noise lines and for any line
            received after `[DONE]`.
        """
        if self._done:
            return None

        event = parse_sse_message(line)
        if event is None:
            if self._debug and line.strip():
                logging.warning("SSE line discarded: %r", line[:200])
            return None

        self._dispatch(event)
        return event

    def _dispatch(self, event: StreamEvent) -> None:
        if isinstance(event, ThreadCreatedEvent):
            if event.thread_id and self.on_thread_created is not None:
                self.on_thread_created(event.thread_id)
        elif isinstance(event, DeltaEvent):
            if event.content:
                self._accumulated_content += event.content
                if self.on_delta is not None:
                    self.on_delta(event.content)
        elif isinstance(event, CompletedEvent):
            # No marca done: solo [DONE] cierra la sesión.
            if event.content and self.on_complete is not None:
                self.on_complete(event.content, event.thread_id)
        elif isinstance(event, ErrorEvent):
            if event.message and self.on_error is not None:
                self.on_error(event.message)
        elif isinstance(event, DoneEvent):
            self._done = True

    def feed_lines(self, lines: Iterable[str | bytes]) -> list[StreamEvent]:
        """
        Process lines until the iterable is exhausted or the session is done.

        Args:
            lines: Lines as produced by `httpx.Response.iter_lines()` or similar;
                bytes are decoded as UTF-8 and trailing CR/LF is stripped.

        Returns:
            The events decoded by this call, `DoneEvent` included.
        """
        events: list[StreamEvent] = []
        for raw_line in lines:
            if self._done:
                break
            if isinstance(raw_line, bytes):
                line = raw_line.decode("utf-8", "ignore")
            else:
                line = raw_line
            event = self.process_message(line.rstrip("\r\n"))
            if event is not None:
                events.append(event)
        return events

    def feed_text(self, text: str) -> list[StreamEvent]:
        """Feed a buffered SSE body; see `feed_lines`."""
        return self.feed_lines(split_sse_lines(text))

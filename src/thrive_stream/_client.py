from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from thrive_stream._errors import AssistantRunError, StreamAPIError
from thrive_stream.events import CompletedEvent, ErrorEvent, StreamEvent, ThreadCreatedEvent
from thrive_stream.session import StreamSession


def _parse_error_response(
    status_code: int,
    body_text: str,
    content_type: str,
) -> StreamAPIError:
    """
    Parsea una respuesta de error de las rutas de streaming.

    Si el body no es JSON o no matchea las formas conocidas,
    retorna StreamAPIError con campos estructurados en None.
    """
    message = "HTTP error"
    error_code: str | None = None
    details: Any | None = None

    fallback = body_text if body_text and body_text.strip() else message

    # Solo parsear JSON si Content-Type lo indica
    if "application/json" not in content_type.lower():
        return StreamAPIError(status_code=status_code, message=fallback, body=body_text)

    try:
        data = json.loads(body_text) if body_text else {}
    except ValueError:
        return StreamAPIError(status_code=status_code, message=fallback, body=body_text)

    if not isinstance(data, dict):
        return StreamAPIError(
            status_code=status_code,
            message=str(data) if data else message,
            body=body_text,
        )

    error_obj = data.get("error")

    if isinstance(error_obj, str) and error_obj.strip():
        message = error_obj.strip()
    elif isinstance(error_obj, dict):
        code = error_obj.get("code")
        if isinstance(code, str) and code.strip():
            error_code = code.strip()

        msg = error_obj.get("message")
        if isinstance(msg, str) and msg.strip():
            message = msg.strip()

        details = error_obj.get("details")
    else:
        msg = data.get("message")
        if isinstance(msg, str) and msg.strip():
            message = msg.strip()

    if details is None:
        details = data.get("details")

    return StreamAPIError(
        status_code=status_code,
        message=message,
        body=body_text,
        error_code=error_code,
        details=details,
    )


def _error_from_response(resp: httpx.Response, body_text: str | None) -> StreamAPIError:
    content_type = resp.headers.get("content-type", "")
    return _parse_error_response(
        status_code=resp.status_code,
        body_text=body_text or "",
        content_type=content_type,
    )


def raise_for_status(resp: httpx.Response) -> None:
    """Verifica status y levanta StreamAPIError estructurado."""
    if 200 <= resp.status_code < 300:
        return

    body_text: str | None = None
    try:
        resp.read()
        body_text = resp.text
    except (httpx.HTTPError, httpx.StreamError, UnicodeDecodeError) as e:
        logging.warning("Unreadable error body for status %s: %r", resp.status_code, e)

    raise _error_from_response(resp, body_text)


async def araise_for_status(resp: httpx.Response) -> None:
    if 200 <= resp.status_code < 300:
        return

    body_text: str | None = None
    try:
        await resp.aread()
        body_text = resp.text
    except (httpx.HTTPError, httpx.StreamError, UnicodeDecodeError) as e:
        logging.warning("Unreadable error body for status %s: %r", resp.status_code, e)

    raise _error_from_response(resp, body_text)


@dataclass(slots=True)
class StreamResult:
    """
    Resumen de un stream consumido.

    `content` es el documento final del evento `completed` (fuente de verdad);
    `accumulated` es la concatenación de los deltas. `done` queda en False si
    el stream se cortó antes de `[DONE]`.
    """
    thread_id: str | None = None
    content: str | None = None
    accumulated: str = ""
    errors: list[str] = field(default_factory=list)
    done: bool = False

    def raise_for_errors(self) -> None:
        """Levanta AssistantRunError si el stream trajo eventos `error`."""
        if self.errors:
            raise AssistantRunError(self.errors)

    def _record(self, event: StreamEvent) -> None:
        if isinstance(event, ThreadCreatedEvent):
            if event.thread_id:
                self.thread_id = event.thread_id
        elif isinstance(event, CompletedEvent):
            if event.content:
                self.content = event.content
                if event.thread_id:
                    self.thread_id = event.thread_id
        elif isinstance(event, ErrorEvent):
            if event.message:
                self.errors.append(event.message)


def _finish(result: StreamResult, session: StreamSession) -> StreamResult:
    result.accumulated = session.get_accumulated_content()
    result.done = session.is_done()
    return result


def consume_response(resp: httpx.Response, session: StreamSession | None = None) -> StreamResult:
    """
    Alimenta una sesión con las líneas de una respuesta httpx en streaming.

    Uso:
        with httpx.stream("POST", url, json=payload) as r:
            result = consume_response(r, session)

    La conexión, autenticación y reintentos son responsabilidad del caller.
    """
    session = session if session is not None else StreamSession()
    raise_for_status(resp)

    result = StreamResult()
    for line in resp.iter_lines():
        for event in session.feed_lines([line]):
            result._record(event)
        if session.is_done():
            break
    return _finish(result, session)


async def aconsume_response(resp: httpx.Response, session: StreamSession | None = None) -> StreamResult:
    """
    Variante asíncrona de consume_response sobre `aiter_lines()`.

    Uso:
        async with client.stream("POST", url, json=payload) as r:
            result = await aconsume_response(r, session)
    """
    session = session if session is not None else StreamSession()
    await araise_for_status(resp)

    result = StreamResult()
    async for line in resp.aiter_lines():
        for event in session.feed_lines([line]):
            result._record(event)
        if session.is_done():
            break
    return _finish(result, session)

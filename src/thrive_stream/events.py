"""
Typed events carried by the assistant SSE stream.
Each `data:` payload is a JSON object discriminated by its `type` field; the
`[DONE]` sentinel is mapped to `DoneEvent`.
"""

from __future__ import annotations

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

DONE_SENTINEL = "[DONE]"


class ThreadCreatedEvent(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)
    type: Literal["thread_created"] = "thread_created"
    thread_id: str = Field(alias="threadId")


class DeltaEvent(BaseModel):
    """A fragment of the JSON document being streamed, not necessarily a whole token."""

    model_config = ConfigDict(extra="ignore", frozen=True)
    type: Literal["delta"] = "delta"
    content: str


class CompletedEvent(BaseModel):
    """The final document as a single string."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)
    type: Literal["completed"] = "completed"
    content: str
    thread_id: Optional[str] = Field(default=None, alias="threadId")


class ErrorEvent(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)
    type: Literal["error"] = "error"
    message: str = Field(alias="error")


class DoneEvent(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)
    type: Literal["done"] = "done"


StreamEvent = Annotated[
    Union[ThreadCreatedEvent, DeltaEvent, CompletedEvent, ErrorEvent, DoneEvent],
    Field(discriminator="type"),
]

STREAM_EVENT_ADAPTER: TypeAdapter[StreamEvent] = TypeAdapter(StreamEvent)

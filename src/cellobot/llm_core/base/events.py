"""Server-sent events emitted while a turn streams to the client."""

import json
from typing import Any, ClassVar, Dict, List

from pydantic import BaseModel, ConfigDict, Field


class StreamEvent(BaseModel):
    """Base class for all stream events.

    Each subclass names its SSE event type in ``event``. The payload is the model
    dumped by alias, so field names on the wire are camelCase where the client expects it.
    """

    model_config = ConfigDict(populate_by_name=True)

    event: ClassVar[str] = ""
    terminal: ClassVar[bool] = False

    def payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)

    def to_sse(self) -> str:
        """Encode the event as one SSE frame."""
        return f"event: {self.event}\ndata: {json.dumps(self.payload())}\n\n"


class TextDeltaEvent(StreamEvent):
    event: ClassVar[str] = "text_delta"

    text: str


class ToolCallsEvent(StreamEvent):
    """The model wants the client to run tools. ``messages`` is the history to echo back."""

    event: ClassVar[str] = "tool_calls"
    terminal: ClassVar[bool] = True

    tool_calls: List[Dict[str, Any]] = Field(alias="toolCalls")
    text: str = ""
    messages: List[Dict[str, Any]]


class DoneEvent(StreamEvent):
    event: ClassVar[str] = "done"
    terminal: ClassVar[bool] = True

    text: str = ""


class ErrorEvent(StreamEvent):
    event: ClassVar[str] = "error"
    terminal: ClassVar[bool] = True

    error: str

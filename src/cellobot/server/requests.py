"""Inbound request bodies for the chat endpoints."""

from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from cellobot.llm_core.exceptions import InvalidContinuation, InvalidRequest
from cellobot.llm_core.messages import ChatMessage, to_history
from cellobot.llm_core.tools import ToolCallResult


class ToolResultIn(BaseModel):
    """One tool result as the workbook executor reports it."""

    id: str = Field(validation_alias=AliasChoices("id", "toolCallId", "tool_call_id"))
    output: Any = None

    def to_result(self) -> ToolCallResult:
        return ToolCallResult(id=self.id, output=self.output)


class ChatRequest(BaseModel):
    """
    Body of ``POST /stream`` and ``POST /chat``.

    Exactly one shape is accepted: a fresh conversation (``history``, or the legacy
    single ``message``) or a continuation (``priorHistory`` with ``toolResults``).
    The original client's ``messages``, ``pendingMessages`` and ``context`` keys are
    accepted as aliases.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    history: Optional[List[ChatMessage]] = Field(default=None, validation_alias=AliasChoices("history", "messages"))
    message: Optional[str] = None
    prior_history: Optional[List[ChatMessage]] = Field(
        default=None, validation_alias=AliasChoices("priorHistory", "pendingMessages", "prior_history")
    )
    tool_results: Optional[List[ToolResultIn]] = Field(
        default=None, validation_alias=AliasChoices("toolResults", "tool_results")
    )
    provider: Optional[str] = None
    model: Optional[str] = None
    model_id: Optional[str] = Field(default=None, validation_alias=AliasChoices("modelId", "model_id"))
    tool_context: Optional[Dict[str, Any]] = Field(
        default=None, validation_alias=AliasChoices("toolContext", "context", "tool_context")
    )

    @property
    def is_continuation(self) -> bool:
        return "prior_history" in self.model_fields_set or "tool_results" in self.model_fields_set

    @property
    def is_fresh(self) -> bool:
        return "history" in self.model_fields_set or "message" in self.model_fields_set

    def ensure_single_shape(self) -> None:
        """
        A shape is present when any of its keys is sent, even with an empty value.

        Raises:
            InvalidContinuation: If both shapes, or neither, are present, or a continuation is incomplete.
            InvalidRequest: If a fresh conversation carries no messages.
        """
        if self.is_fresh and self.is_continuation:
            raise InvalidContinuation("Send either history or priorHistory with toolResults, not both.")
        if not self.is_fresh and not self.is_continuation:
            raise InvalidContinuation("Either history or priorHistory with toolResults is required.")
        if self.is_continuation and (not self.prior_history or self.tool_results is None):
            raise InvalidContinuation("A continuation needs both priorHistory and toolResults.")
        if self.is_fresh and not self.history and not self.message:
            raise InvalidRequest("Message or messages array is required.")

    def conversation(self) -> List[Dict[str, Any]]:
        """The history to run, before any tool results are merged."""
        if self.is_continuation:
            return to_history(self.prior_history or [])
        if self.history:
            return to_history(self.history)
        if self.message:
            return [{"role": "user", "content": self.message}]
        raise InvalidRequest("Message or messages array is required.")

    def results(self) -> Optional[List[ToolCallResult]]:
        if self.tool_results is None:
            return None
        return [r.to_result() for r in self.tool_results]

"""Core abstractions for provider adapters."""

import inspect
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional, Sequence, Union

from .events import DoneEvent, StreamEvent, TextDeltaEvent, ToolCallsEvent
from ..exceptions import InvalidContinuation, VendorError
from ..logger import get_logger
from ..tools.models import ToolCallRequest, ToolCallResult

logger = get_logger(__name__)

History = List[Dict[str, Any]]
TextDeltaCallback = Callable[[str], Union[None, Awaitable[None]]]


@dataclass(frozen=True)
class TurnDone:
    """The model finished without requesting tools."""

    text: str
    round_limit_reached: bool = False

    def to_event(self) -> StreamEvent:
        return DoneEvent(text=self.text)


@dataclass(frozen=True)
class ToolCallsRequested:
    """The model asked for one or more tools.

    Attributes:
        text: Any text the model produced before asking for tools.
        tool_calls: The normalized calls, in the order the model emitted them.
        updated_history: The input history plus exactly one assistant entry in the vendor's envelope.
    """

    text: str
    tool_calls: List[ToolCallRequest]
    updated_history: History = field(default_factory=list)

    def to_event(self) -> StreamEvent:
        return ToolCallsEvent(
            tool_calls=[call.to_dict() for call in self.tool_calls],
            text=self.text,
            messages=self.updated_history,
        )


LoopTurnResult = Union[TurnDone, ToolCallsRequested]


class ProviderAdapter(ABC):
    """Abstract base class for one vendor's chat API.

    An adapter runs exactly one model turn: it streams text deltas as they arrive and
    finishes with either a ``TurnDone`` or a ``ToolCallsRequested``. It owns the vendor's
    history envelope, so only the adapter knows how tool calls and tool results are laid out.
    Histories passed in are never mutated.
    """

    provider: str = ""
    default_model: str = ""

    def __init__(self, client: Any, max_tokens: int = 4096):
        self.client = client
        self.max_tokens = max_tokens

    def model_for(self, model_id: Optional[str]) -> str:
        return model_id or self.default_model

    @abstractmethod
    def stream_turn(
        self,
        system_prompt: str,
        history: Sequence[Dict[str, Any]],
        tool_schemas: Optional[List[Dict[str, Any]]],
        model_id: Optional[str] = None,
    ) -> AsyncIterator[Union[TextDeltaEvent, TurnDone, ToolCallsRequested]]:
        """Run one model turn.

        Yields a ``TextDeltaEvent`` per text fragment as the vendor produces it. The last
        item yielded is the ``LoopTurnResult``.

        Raises:
            VendorError: If the vendor call fails.
            MalformedToolArguments: If accumulated tool arguments are not a JSON object.
        """
        pass

    async def run_turn(
        self,
        system_prompt: str,
        history: Sequence[Dict[str, Any]],
        tool_schemas: Optional[List[Dict[str, Any]]],
        model_id: Optional[str] = None,
        on_text_delta: Optional[TextDeltaCallback] = None,
    ) -> LoopTurnResult:
        """Run one turn to completion, forwarding text deltas to ``on_text_delta``."""
        result: Optional[LoopTurnResult] = None
        async for item in self.stream_turn(system_prompt, history, tool_schemas, model_id):
            if isinstance(item, TextDeltaEvent):
                if on_text_delta is not None:
                    ret = on_text_delta(item.text)
                    if inspect.isawaitable(ret):
                        await ret
            else:
                result = item

        if result is None:
            raise VendorError(f"{self.provider} stream ended without a result.")
        return result

    @abstractmethod
    def append_tool_results(self, history: Sequence[Dict[str, Any]], results: Sequence[ToolCallResult]) -> History:
        """Return a new history with the tool results merged in the vendor's convention."""
        pass

    @abstractmethod
    def pending_tool_call_ids(self, history: Sequence[Dict[str, Any]]) -> List[str]:
        """Ids of the tool calls requested by the last entry, if it is an assistant tool-call entry."""
        pass

    @abstractmethod
    def count_tool_rounds(self, history: Sequence[Dict[str, Any]]) -> int:
        """Number of consecutive tool-call rounds since the last user-authored message."""
        pass

    def merge_continuation(self, prior_history: Sequence[Dict[str, Any]], results: Sequence[ToolCallResult]) -> History:
        """Validate tool results against the pending calls and merge them into the history.

        Every pending id must be answered exactly once, and no unknown id may appear.

        Raises:
            InvalidContinuation: If the results do not match the pending tool calls.
        """
        pending = self.pending_tool_call_ids(prior_history)
        if not pending:
            raise InvalidContinuation("The prior history has no pending tool calls.")

        seen: List[str] = []
        for result in results:
            if result.id not in pending:
                raise InvalidContinuation(f"Unknown tool call id '{result.id}'.")
            if result.id in seen:
                raise InvalidContinuation(f"Duplicate result for tool call id '{result.id}'.")
            seen.append(result.id)

        missing = [call_id for call_id in pending if call_id not in seen]
        if missing:
            raise InvalidContinuation(f"Missing results for tool call ids: {', '.join(missing)}.")

        # Results follow the order of the calls, not the order they came back in
        ordered = sorted(results, key=lambda r: pending.index(r.id))
        logger.debug(f"Merging {len(ordered)} tool result(s) into {self.provider} history.")
        return self.append_tool_results(prior_history, ordered)

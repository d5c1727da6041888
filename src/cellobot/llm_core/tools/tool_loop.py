"""Tool-use orchestration: the single-turn controller and an in-process execution loop."""

from __future__ import annotations

import asyncio
import inspect
from contextlib import aclosing
from dataclasses import dataclass
from typing import (
    Any,
    AsyncIterator,
    Callable,
    Dict,
    List,
    Optional,
    Protocol,
    Sequence,
    Union,
)

from pydantic import ValidationError

from ..base import (
    History,
    LoopTurnResult,
    ProviderAdapter,
    TextDeltaCallback,
    TextDeltaEvent,
    ToolCallsRequested,
    TurnDone,
)
from ..exceptions import InvalidRequest, ToolExecutionError
from ..logger import get_logger
from .models import ToolCallRequest, ToolCallResult
from .registry import ToolRegistry

logger = get_logger(__name__)

MAX_TOOL_ROUNDS = 10
ROUND_LIMIT_MESSAGE = (
    "This conversation ended because the tool-call limit was reached. "
    "Send a new message to continue where we left off."
)

AdapterFactory = Callable[[str], ProviderAdapter]
ToolSource = Callable[[str], Optional[List[Dict[str, Any]]]]


@dataclass(frozen=True)
class TurnPlan:
    """Everything one model turn needs, after the request has been validated."""

    adapter: ProviderAdapter
    system_prompt: str
    history: History
    model_id: Optional[str] = None


class ToolLoopController:
    """Stateless driver of one model turn.

    The controller picks the adapter for a provider, merges tool results into the echoed
    history, and runs a single turn. It keeps nothing between calls: the round cap is
    derived from the history itself, so any process can serve any continuation.
    """

    def __init__(
        self,
        adapter_factory: AdapterFactory,
        *,
        tool_source: ToolSource,
        max_rounds: int = MAX_TOOL_ROUNDS,
    ) -> None:
        """
        Args:
            adapter_factory: Builds the adapter for a provider name. May raise ConfigurationError.
            tool_source: Returns the vendor-shaped tool list for a provider name.
            max_rounds: Consecutive tool-call rounds allowed before the conversation is ended.
        """
        self._adapter_factory = adapter_factory
        self._tool_source = tool_source
        self.max_rounds = max_rounds

    def plan(
        self,
        system_prompt: str,
        history: Sequence[Dict[str, Any]],
        provider: str,
        model_id: Optional[str] = None,
        tool_results: Optional[Sequence[ToolCallResult]] = None,
    ) -> TurnPlan:
        """Validate a request and prepare its turn. No vendor call is made here.

        Raises:
            InvalidRequest: If the history is empty or does not start with a user message.
            InvalidContinuation: If ``tool_results`` do not match the pending tool calls.
            ConfigurationError: If the provider's credential is missing.
        """
        if not history:
            raise InvalidRequest("History must contain at least one message.")
        if history[0].get("role") != "user":
            raise InvalidRequest("History must start with a user message.")

        adapter = self._adapter_factory(provider)
        merged = list(history) if tool_results is None else adapter.merge_continuation(history, tool_results)
        return TurnPlan(adapter=adapter, system_prompt=system_prompt, history=merged, model_id=model_id)

    async def stream(self, plan: TurnPlan) -> AsyncIterator[Union[TextDeltaEvent, TurnDone, ToolCallsRequested]]:
        """Run the planned turn, yielding text deltas and then the turn result."""
        adapter = plan.adapter
        rounds = adapter.count_tool_rounds(plan.history)
        if rounds >= self.max_rounds:
            logger.warning(f"Tool round limit ({self.max_rounds}) reached. Ending the conversation.")
            yield TextDeltaEvent(text=ROUND_LIMIT_MESSAGE)
            yield TurnDone(text=ROUND_LIMIT_MESSAGE, round_limit_reached=True)
            return

        logger.debug(f"Starting {adapter.provider} turn (round {rounds + 1}/{self.max_rounds}).")
        tools = self._tool_source(adapter.provider)
        async with aclosing(adapter.stream_turn(plan.system_prompt, plan.history, tools, plan.model_id)) as turn:
            async for item in turn:
                yield item

    async def run(self, plan: TurnPlan, on_text_delta: Optional[TextDeltaCallback] = None) -> LoopTurnResult:
        result: Optional[LoopTurnResult] = None
        async for item in self.stream(plan):
            if isinstance(item, TextDeltaEvent):
                if on_text_delta is not None:
                    ret = on_text_delta(item.text)
                    if inspect.isawaitable(ret):
                        await ret
            else:
                result = item
        if result is None:
            raise RuntimeError("Turn produced no result.")
        return result

    async def advance(
        self,
        system_prompt: str,
        history: Sequence[Dict[str, Any]],
        provider: str,
        model_id: Optional[str] = None,
        tool_results: Optional[Sequence[ToolCallResult]] = None,
        on_text_delta: Optional[TextDeltaCallback] = None,
    ) -> LoopTurnResult:
        """Plan and run one turn.

        Args:
            system_prompt: Instructions for the model.
            history: The conversation so far, in the provider's envelope.
            provider: Provider name, e.g. "anthropic" or "openai".
            model_id: Vendor model id. The adapter's default is used when empty.
            tool_results: Results for the tool calls pending at the end of ``history``.
            on_text_delta: Optional callback receiving each text fragment.

        Returns:
            ``TurnDone`` or ``ToolCallsRequested``.
        """
        plan = self.plan(system_prompt, history, provider, model_id, tool_results)
        return await self.run(plan, on_text_delta)


class WorkbookExecutor(Protocol):
    """Runs a workbook operation. ``execute`` may be sync or async.

    Returns ``{"success": True, ...}`` or ``{"success": False, "error": "..."}``.
    """

    def execute(self, name: str, tool_input: Dict[str, Any]) -> Any: ...


@dataclass(frozen=True)
class ConversationOutcome:
    text: str
    history: History
    rounds: int
    round_limit_reached: bool = False


class ToolExecutionLoop:
    """In-process tool loop for callers that hold a workbook executor themselves.

    Drives ``advance`` until the model answers in text, executing requested tools in
    the order the model emitted them. Recoverable failures are reported back to the
    model as ``{"success": False, "error": ...}`` outputs.
    """

    # System errors (like ConnectionError, MemoryError) are NOT included and will
    # propagate, stopping the loop.
    RECOVERABLE_ERRORS = (
        ToolExecutionError,
        FileNotFoundError,
        PermissionError,
        ValueError,
        TypeError,
        KeyError,
    )

    def __init__(
        self,
        controller: ToolLoopController,
        executor: WorkbookExecutor,
        registry: Optional[ToolRegistry] = None,
        tool_timeout: float = 180.0,
    ) -> None:
        self._controller = controller
        self._executor = executor
        self._registry = registry
        self._tool_timeout = tool_timeout

    async def run(
        self,
        system_prompt: str,
        history: Sequence[Dict[str, Any]],
        provider: str,
        model_id: Optional[str] = None,
        on_text_delta: Optional[TextDeltaCallback] = None,
    ) -> ConversationOutcome:
        """Run the conversation until the model stops asking for tools or the round cap hits."""
        current: History = list(history)
        results: Optional[List[ToolCallResult]] = None
        rounds = 0

        while True:
            plan = self._controller.plan(system_prompt, current, provider, model_id, tool_results=results)
            turn = await self._controller.run(plan, on_text_delta)

            if isinstance(turn, TurnDone):
                if turn.round_limit_reached:
                    logger.warning(f"Max tool loops ({self._controller.max_rounds}) reached. Stopping execution.")
                return ConversationOutcome(
                    text=turn.text, history=plan.history, rounds=rounds, round_limit_reached=turn.round_limit_reached
                )

            rounds += 1
            logger.info(f"Loop {rounds}: Processing {len(turn.tool_calls)} tool call(s).")
            # Workbook mutations depend on each other, so calls run one at a time
            results = [await self._handle_tool_call(call) for call in turn.tool_calls]
            current = turn.updated_history

    async def _handle_tool_call(self, tool_call: ToolCallRequest) -> ToolCallResult:
        logger.debug(f"Handling tool call: {tool_call.name} (ID: {tool_call.id})")

        if self._registry is not None:
            tool_def = self._registry.tools.get(tool_call.name)
            if tool_def is None:
                msg = f"Tool '{tool_call.name}' not found in registry."
                logger.warning(msg)
                return ToolCallResult(id=tool_call.id, output={"success": False, "error": msg})

            if tool_def.args_model is not None:
                try:
                    tool_def.args_model.model_validate(tool_call.input)
                except ValidationError as exc:
                    msg = f"Argument validation failed: {exc}"
                    logger.warning(f"Validation error for '{tool_call.name}': {msg}")
                    return ToolCallResult(id=tool_call.id, output={"success": False, "error": msg})

        try:
            logger.info(f"Executing tool '{tool_call.name}'...")
            output = await self._execute(tool_call.name, tool_call.input)
        except self.RECOVERABLE_ERRORS as exc:
            msg = str(exc)
            logger.warning(f"Recoverable error in '{tool_call.name}': {msg} ({type(exc).__name__})")
            return ToolCallResult(id=tool_call.id, output={"success": False, "error": msg})

        return ToolCallResult(id=tool_call.id, output=output)

    async def _execute(self, name: str, tool_input: Dict[str, Any]) -> Any:
        """Run the executor, handling async/sync and timeouts.

        Raises:
            ToolExecutionError: If execution times out.
        """
        execute = self._executor.execute
        try:
            if inspect.iscoroutinefunction(execute):
                return await asyncio.wait_for(execute(name, tool_input), timeout=self._tool_timeout)

            return await asyncio.wait_for(
                asyncio.to_thread(execute, name, tool_input),
                timeout=self._tool_timeout,
            )
        except asyncio.TimeoutError as exc:
            raise ToolExecutionError(f"Tool execution timed out after {self._tool_timeout} seconds.") from exc

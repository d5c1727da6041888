from openai import AsyncOpenAI
import openai
from typing import Any, AsyncIterator, Dict, Iterable, List, Optional, Sequence, Union, cast
import json

from cellobot.llm_core.base import History, ProviderAdapter, TextDeltaEvent, ToolCallsRequested, TurnDone
from cellobot.llm_core.exceptions import VendorError
from cellobot.llm_core.logger import get_logger
from cellobot.llm_core.tools import ToolCallAccumulator, ToolCallResult

logger = get_logger(__name__)


class OpenAIAdapter(ProviderAdapter):
    """Adapter for OpenAI chat completions.

    Tool calls arrive as chunk deltas keyed by ``index``. A turn wants tools whenever
    any tool-call fragment was seen, regardless of the finish reason.
    """

    provider = "openai"
    default_model = "gpt-4o-mini"

    def __init__(self, client: AsyncOpenAI, max_tokens: int = 4096):
        """Initialize the OpenAI adapter.

        Args:
            client: The initialized AsyncOpenAI client.
            max_tokens: Maximum number of tokens to generate.
        """
        super().__init__(client, max_tokens)

    async def stream_turn(
        self,
        system_prompt: str,
        history: Sequence[Dict[str, Any]],
        tool_schemas: Optional[List[Dict[str, Any]]],
        model_id: Optional[str] = None,
    ) -> AsyncIterator[Union[TextDeltaEvent, TurnDone, ToolCallsRequested]]:
        model = self.model_for(model_id)
        messages: List[Dict[str, Any]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.extend(history)

        kwargs: Dict[str, Any] = {
            "model": model,
            # The library expects a union of message types; plain dicts are structurally compatible.
            "messages": cast(Iterable[Any], messages),
            "max_tokens": self.max_tokens,
            "stream": True,
        }
        if tool_schemas:
            kwargs["tools"] = tool_schemas
            kwargs["tool_choice"] = "auto"

        logger.debug(f"Sending request to OpenAI model: {model} ({len(history)} messages)")
        try:
            stream = await self.client.chat.completions.create(**kwargs)
        except openai.APIError as exc:
            raise VendorError(f"OpenAI request failed: {exc}") from exc

        text_parts: List[str] = []
        accumulator = ToolCallAccumulator()
        finish_reason: Optional[str] = None

        try:
            async for chunk in stream:
                if not chunk.choices:
                    continue
                choice = chunk.choices[0]
                delta = choice.delta
                if delta.content:
                    text_parts.append(delta.content)
                    yield TextDeltaEvent(text=delta.content)
                for tc in delta.tool_calls or []:
                    function = tc.function
                    accumulator.add_fragment(
                        tc.index,
                        call_id=tc.id,
                        name=function.name if function else None,
                        arguments=function.arguments if function else None,
                    )
                if choice.finish_reason:
                    finish_reason = choice.finish_reason
        except openai.APIError as exc:
            raise VendorError(f"OpenAI stream failed: {exc}") from exc
        finally:
            await stream.close()

        text = "".join(text_parts)
        logger.debug(f"OpenAI turn finished. Finish reason: {finish_reason}")

        if not accumulator:
            yield TurnDone(text=text)
            return

        raw_calls = accumulator.raw_calls()
        tool_calls = accumulator.finalize()
        assistant = {
            "role": "assistant",
            "content": text or None,
            "tool_calls": [
                {
                    "id": raw["id"],
                    "type": "function",
                    "function": {"name": raw["name"], "arguments": raw["arguments"]},
                }
                for raw in raw_calls
            ],
        }
        yield ToolCallsRequested(text=text, tool_calls=tool_calls, updated_history=[*history, assistant])

    def append_tool_results(self, history: Sequence[Dict[str, Any]], results: Sequence[ToolCallResult]) -> History:
        """Each result becomes its own ``tool`` message."""
        return [
            *history,
            *(
                {"role": "tool", "tool_call_id": result.id, "content": json.dumps(result.output)}
                for result in results
            ),
        ]

    def pending_tool_call_ids(self, history: Sequence[Dict[str, Any]]) -> List[str]:
        if not history or history[-1].get("role") != "assistant":
            return []
        return [tc.get("id") for tc in history[-1].get("tool_calls") or [] if tc.get("id")]

    def count_tool_rounds(self, history: Sequence[Dict[str, Any]]) -> int:
        rounds = 0
        for msg in reversed(history):
            role = msg.get("role")
            if role == "tool":
                continue
            if role == "assistant" and msg.get("tool_calls"):
                rounds += 1
                continue
            break
        return rounds

import json
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence, Union

import anthropic
from anthropic import AsyncAnthropic

from cellobot.llm_core.base import History, ProviderAdapter, TextDeltaEvent, ToolCallsRequested, TurnDone
from cellobot.llm_core.exceptions import VendorError
from cellobot.llm_core.logger import get_logger
from cellobot.llm_core.tools import ToolCallAccumulator, ToolCallRequest, ToolCallResult

logger = get_logger(__name__)


class AnthropicAdapter(ProviderAdapter):
    """
    Adapter for the Anthropic Messages API.

    Consumes the raw event stream: ``content_block_start`` opens text or tool_use blocks,
    ``content_block_delta`` carries text or partial tool-input JSON, and ``message_delta``
    reports the stop reason. A turn wants tools only when the stop reason says so.
    """

    provider = "anthropic"
    default_model = "claude-sonnet-4-5-20250929"

    def __init__(self, client: AsyncAnthropic, max_tokens: int = 4096):
        """
        Args:
            client: The initialized AsyncAnthropic client.
            max_tokens: The maximum number of tokens to generate per turn.
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
        kwargs: Dict[str, Any] = {
            "model": model,
            "max_tokens": self.max_tokens,
            "system": system_prompt,
            "messages": list(history),
            "stream": True,
        }
        if tool_schemas:
            kwargs["tools"] = tool_schemas

        logger.debug(f"Sending request to Anthropic model: {model} ({len(history)} messages)")
        try:
            stream = await self.client.messages.create(**kwargs)
        except anthropic.APIError as exc:
            raise VendorError(f"Anthropic request failed: {exc}") from exc

        text_parts: List[str] = []
        text_blocks: Dict[int, List[str]] = {}
        accumulator = ToolCallAccumulator()
        stop_reason: Optional[str] = None

        try:
            async for event in stream:
                if event.type == "content_block_start":
                    block = event.content_block
                    if block.type == "tool_use":
                        accumulator.start(event.index, block.id, block.name)
                    elif block.type == "text":
                        text_blocks.setdefault(event.index, [])
                elif event.type == "content_block_delta":
                    delta = event.delta
                    if delta.type == "text_delta":
                        text_parts.append(delta.text)
                        text_blocks.setdefault(event.index, []).append(delta.text)
                        yield TextDeltaEvent(text=delta.text)
                    elif delta.type == "input_json_delta":
                        accumulator.add_fragment(event.index, arguments=delta.partial_json)
                elif event.type == "message_delta":
                    stop_reason = getattr(event.delta, "stop_reason", None) or stop_reason
        except anthropic.APIError as exc:
            raise VendorError(f"Anthropic stream failed: {exc}") from exc
        finally:
            await stream.close()

        text = "".join(text_parts)
        logger.debug(f"Anthropic turn finished. Stop reason: {stop_reason}")

        if stop_reason != "tool_use" or not accumulator:
            yield TurnDone(text=text)
            return

        tool_calls = accumulator.finalize()
        content = self._assistant_blocks(text_blocks, accumulator.indices(), tool_calls)
        yield ToolCallsRequested(
            text=text,
            tool_calls=tool_calls,
            updated_history=[*history, {"role": "assistant", "content": content}],
        )

    @staticmethod
    def _assistant_blocks(
        text_blocks: Dict[int, List[str]], tool_indices: List[int], tool_calls: List[ToolCallRequest]
    ) -> List[Dict[str, Any]]:
        """Rebuild the assistant content in the order the model emitted its blocks. Empty text blocks are dropped."""
        blocks: Dict[int, Dict[str, Any]] = {}
        for index, parts in text_blocks.items():
            text = "".join(parts)
            if text:
                blocks[index] = {"type": "text", "text": text}
        for index, call in zip(tool_indices, tool_calls):
            blocks[index] = {"type": "tool_use", "id": call.id, "name": call.name, "input": call.input}
        return [block for _, block in sorted(blocks.items())]

    def append_tool_results(self, history: Sequence[Dict[str, Any]], results: Sequence[ToolCallResult]) -> History:
        """All results of a round go into one user message of ``tool_result`` blocks."""
        blocks = [
            {"type": "tool_result", "tool_use_id": result.id, "content": json.dumps(result.output)}
            for result in results
        ]
        return [*history, {"role": "user", "content": blocks}]

    def pending_tool_call_ids(self, history: Sequence[Dict[str, Any]]) -> List[str]:
        if not history or history[-1].get("role") != "assistant":
            return []
        return self._tool_use_ids(history[-1])

    def count_tool_rounds(self, history: Sequence[Dict[str, Any]]) -> int:
        rounds = 0
        for msg in reversed(history):
            role = msg.get("role")
            if role == "assistant":
                if not self._tool_use_ids(msg):
                    break
                rounds += 1
            elif role == "user":
                if not self._is_tool_result_message(msg):
                    break
        return rounds

    @staticmethod
    def _tool_use_ids(msg: Dict[str, Any]) -> List[str]:
        content = msg.get("content")
        if not isinstance(content, list):
            return []
        return [b["id"] for b in content if isinstance(b, dict) and b.get("type") == "tool_use" and "id" in b]

    @staticmethod
    def _is_tool_result_message(msg: Dict[str, Any]) -> bool:
        content = msg.get("content")
        return (
            isinstance(content, list)
            and bool(content)
            and all(isinstance(b, dict) and b.get("type") == "tool_result" for b in content)
        )

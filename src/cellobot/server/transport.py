"""Server-sent event streaming of one model turn."""

from contextlib import aclosing
from typing import AsyncIterator, Optional

from fastapi.responses import StreamingResponse

from cellobot.llm_core.base import ErrorEvent, LoopTurnResult, StreamEvent, TextDeltaEvent
from cellobot.llm_core.exceptions import CelloBotError
from cellobot.llm_core.logger import get_logger
from cellobot.llm_core.tools.tool_loop import ToolLoopController, TurnPlan

logger = get_logger(__name__)

SSE_HEADERS = {"Cache-Control": "no-cache", "X-Accel-Buffering": "no"}


class StreamingTransport:
    """
    Turns a planned turn into a stream of events.

    Text deltas are forwarded as they are produced. Every stream ends with exactly one
    terminal event (``tool_calls``, ``done`` or ``error``). Failures never escape the
    stream: they become the terminal ``error`` event.
    """

    def __init__(self, controller: ToolLoopController):
        self._controller = controller

    async def events(self, plan: TurnPlan) -> AsyncIterator[StreamEvent]:
        result: Optional[LoopTurnResult] = None
        try:
            async with aclosing(self._controller.stream(plan)) as turn:
                async for item in turn:
                    if isinstance(item, TextDeltaEvent):
                        yield item
                    else:
                        result = item
        except CelloBotError as exc:
            logger.error(f"Turn failed: {exc} ({type(exc).__name__})")
            yield ErrorEvent(error=str(exc))
            return
        except Exception as exc:
            logger.error("Stream error", exc_info=True)
            yield ErrorEvent(error=str(exc) or "Streaming failed")
            return

        if result is None:
            yield ErrorEvent(error="The model stream ended without a result.")
        else:
            yield result.to_event()

    @staticmethod
    async def error_only(message: str) -> AsyncIterator[StreamEvent]:
        yield ErrorEvent(error=message)

    @staticmethod
    async def encode(events: AsyncIterator[StreamEvent]) -> AsyncIterator[str]:
        """SSE frames for ``events``. The stream ends after the first terminal event."""
        async with aclosing(events) as source:
            async for event in source:
                yield event.to_sse()
                if event.terminal:
                    return

    def response(self, events: AsyncIterator[StreamEvent]) -> StreamingResponse:
        return StreamingResponse(self.encode(events), media_type="text/event-stream", headers=SSE_HEADERS)

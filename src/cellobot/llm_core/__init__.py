from .base import (
    ProviderAdapter,
    LoopTurnResult,
    TurnDone,
    ToolCallsRequested,
    StreamEvent,
    TextDeltaEvent,
    ToolCallsEvent,
    DoneEvent,
    ErrorEvent,
)
from .tools import ToolRegistry, ToolSchema, ToolCallRequest, ToolCallResult, ToolCallAccumulator
from .tools.tool_loop import (
    MAX_TOOL_ROUNDS,
    ROUND_LIMIT_MESSAGE,
    ConversationOutcome,
    ToolExecutionLoop,
    ToolLoopController,
    TurnPlan,
    WorkbookExecutor,
)
from .messages import ChatMessage
from .logger import get_logger, setup_logging

__all__ = [
    "ProviderAdapter",
    "LoopTurnResult",
    "TurnDone",
    "ToolCallsRequested",
    "StreamEvent",
    "TextDeltaEvent",
    "ToolCallsEvent",
    "DoneEvent",
    "ErrorEvent",
    "ToolRegistry",
    "ToolSchema",
    "ToolCallRequest",
    "ToolCallResult",
    "ToolCallAccumulator",
    "MAX_TOOL_ROUNDS",
    "ROUND_LIMIT_MESSAGE",
    "ConversationOutcome",
    "ToolExecutionLoop",
    "ToolLoopController",
    "TurnPlan",
    "WorkbookExecutor",
    "ChatMessage",
    "get_logger",
    "setup_logging",
]

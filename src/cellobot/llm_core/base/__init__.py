from .base import (
    History,
    LoopTurnResult,
    ProviderAdapter,
    TextDeltaCallback,
    ToolCallsRequested,
    TurnDone,
)
from .events import DoneEvent, ErrorEvent, StreamEvent, TextDeltaEvent, ToolCallsEvent

__all__ = [
    "History",
    "LoopTurnResult",
    "ProviderAdapter",
    "TextDeltaCallback",
    "ToolCallsRequested",
    "TurnDone",
    "StreamEvent",
    "TextDeltaEvent",
    "ToolCallsEvent",
    "DoneEvent",
    "ErrorEvent",
]

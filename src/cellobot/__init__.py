"""Backend for an AI chat assistant embedded in a spreadsheet."""

from .config import Settings
from .llm_core import (
    MAX_TOOL_ROUNDS,
    ROUND_LIMIT_MESSAGE,
    ProviderAdapter,
    ToolCallsRequested,
    ToolExecutionLoop,
    ToolLoopController,
    TurnDone,
    get_logger,
    setup_logging,
)
from .llm_impl import AnthropicAdapter, OpenAIAdapter, create_adapter, list_tools, resolve, resolve_request
from .server import create_app

__all__ = [
    "Settings",
    "MAX_TOOL_ROUNDS",
    "ROUND_LIMIT_MESSAGE",
    "ProviderAdapter",
    "ToolCallsRequested",
    "ToolExecutionLoop",
    "ToolLoopController",
    "TurnDone",
    "get_logger",
    "setup_logging",
    "AnthropicAdapter",
    "OpenAIAdapter",
    "create_adapter",
    "list_tools",
    "resolve",
    "resolve_request",
    "create_app",
]

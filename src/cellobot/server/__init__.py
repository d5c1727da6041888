"""HTTP transport for the chat backend."""

from .app import create_app
from .prompt import SkillRetriever, build_system_prompt
from .requests import ChatRequest, ToolResultIn
from .transport import SSE_HEADERS, StreamingTransport

__all__ = [
    "create_app",
    "SkillRetriever",
    "build_system_prompt",
    "ChatRequest",
    "ToolResultIn",
    "SSE_HEADERS",
    "StreamingTransport",
]

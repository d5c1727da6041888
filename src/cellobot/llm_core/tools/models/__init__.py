"""Tool-related data models."""

from .models import ToolSchema
from .tool_call import ToolCallRequest, ToolCallResult

__all__ = ["ToolSchema", "ToolCallRequest", "ToolCallResult"]

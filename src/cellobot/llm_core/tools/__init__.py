"""Tool catalog building blocks. The loop lives in ``tool_loop`` and is imported from there."""

from .models import ToolSchema, ToolCallRequest, ToolCallResult
from .schema import SchemaValidator
from .registry import ToolRegistry
from .accumulator import ToolCallAccumulator
from .definitions import WORKBOOK_TOOLS, workbook_tool_definitions

__all__ = [
    "ToolSchema",
    "ToolCallRequest",
    "ToolCallResult",
    "SchemaValidator",
    "ToolRegistry",
    "ToolCallAccumulator",
    "WORKBOOK_TOOLS",
    "workbook_tool_definitions",
]

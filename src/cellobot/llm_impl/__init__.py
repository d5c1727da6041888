"""Collect concrete provider adapters and their provider-specific tool registries."""

from .anthropic_api import AnthropicAdapter, AnthropicToolRegistry
from .openai_api import OpenAIAdapter, OpenAIToolRegistry
from .resolver import Provider, ResolvedModel, resolve, resolve_request
from .catalog import get_registry, list_tools, reset_tool_catalog, tool_schemas_for
from .factory import create_adapter

__all__ = [
    "AnthropicAdapter",
    "AnthropicToolRegistry",
    "OpenAIAdapter",
    "OpenAIToolRegistry",
    "Provider",
    "ResolvedModel",
    "resolve",
    "resolve_request",
    "get_registry",
    "list_tools",
    "reset_tool_catalog",
    "tool_schemas_for",
    "create_adapter",
]

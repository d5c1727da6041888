"""Process-wide tool catalog.

Registries are built lazily on first use and then reused for the life of the process.
They are read-only after construction. ``reset_tool_catalog`` drops them (tests, reloads).
"""

from functools import lru_cache
from typing import Any, Dict, List, Literal, Optional

from cellobot.llm_core.logger import get_logger
from cellobot.llm_core.tools import ToolRegistry, workbook_tool_definitions
from .anthropic_api import AnthropicToolRegistry
from .openai_api import OpenAIToolRegistry
from .resolver import Provider

logger = get_logger(__name__)

ToolFormat = Literal["anthropic", "openai", "generic"]

_REGISTRY_TYPES = {
    Provider.ANTHROPIC: AnthropicToolRegistry,
    Provider.OPENAI: OpenAIToolRegistry,
}


@lru_cache(maxsize=None)
def get_registry(provider: str) -> ToolRegistry:
    """Return the registry rendering the workbook tools for ``provider``.

    Raises:
        ValueError: If the provider is unknown.
    """
    registry_cls = _REGISTRY_TYPES[Provider(provider)]
    registry = registry_cls()
    registry.register_all(workbook_tool_definitions())
    logger.debug(f"Built {provider} tool registry with {len(registry.tools)} tools.")
    return registry


def tool_schemas_for(provider: str) -> Optional[List[Dict[str, Any]]]:
    return get_registry(provider).tool_object


def list_tools(tool_format: ToolFormat = "generic") -> List[Dict[str, Any]]:
    """List the workbook tools in the requested rendering."""
    if tool_format == "generic":
        return get_registry(Provider.ANTHROPIC.value).describe()
    return get_registry(tool_format).tool_object or []


def reset_tool_catalog() -> None:
    get_registry.cache_clear()
    workbook_tool_definitions.cache_clear()

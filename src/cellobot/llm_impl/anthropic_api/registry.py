from typing import Any, Dict, List, Optional

from cellobot.llm_core.tools import ToolRegistry


class AnthropicToolRegistry(ToolRegistry):
    """
    A specialized ToolRegistry for Anthropic models.

    Renders each tool as ``{name, description, input_schema}``.
    """

    @property
    def tool_object(self) -> Optional[List[Dict[str, Any]]]:
        if not self.tools:
            return None

        return [
            {"name": tool.name, "description": tool.description, "input_schema": tool.parameters}
            for tool in self.tools.values()
        ]

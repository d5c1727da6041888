from typing import Any, Dict, List, Optional

from cellobot.llm_core.tools import ToolRegistry


class OpenAIToolRegistry(ToolRegistry):
    """
    A specialized ToolRegistry for OpenAI models.

    This class extends the base ToolRegistry to provide OpenAI-specific
    tool object generation, which is required for integrating tools
    with the OpenAI client.
    """

    @property
    def tool_object(self) -> Optional[List[Dict[str, Any]]]:
        """
        Generates a list of tool definitions suitable for the OpenAI API
        based on the registered tools.

        Returns:
            A list of tool dictionaries, or None if no tools are registered.
        """
        if not self.tools:
            return None

        return [
            {
                "type": "function",
                "function": {
                    "name": tool.name,
                    "description": tool.description,
                    "parameters": tool.parameters,
                },
            }
            for tool in self.tools.values()
        ]

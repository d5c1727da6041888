"""Tool registry abstraction shared by the vendor-specific renderings."""

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional, Type, Union

from pydantic import BaseModel

from ..models import ToolSchema
from ..schema import SchemaValidator
from ...exceptions import ToolNotFoundError, ToolRegistrationError
from ...logger import get_logger

logger = get_logger(__name__)


class ToolRegistry(ABC):
    """
    A catalog of the workbook operations the model may request.

    The registry only describes tools. Execution happens in the external workbook
    executor, so no callables are stored here. Subclasses render the same
    definitions in the envelope their vendor expects.
    """

    def __init__(self) -> None:
        """Initialize the ToolRegistry."""
        self.tools: Dict[str, ToolSchema] = {}

    def register(
        self,
        name_or_tool: Union[str, ToolSchema],
        description: Optional[str] = None,
        args_model: Optional[Type[BaseModel]] = None,
    ) -> None:
        """
        Register a new tool.

        A tool is registered either from a ready `ToolSchema` or from its name, description
        and Pydantic argument model, in which case the parameter schema is generated.

        Args:
            name_or_tool: Either a `ToolSchema` object or the name of the tool.
            description: What the tool does. Required if `name_or_tool` is a string.
            args_model: Pydantic model of the tool input. Required if `name_or_tool` is a string.

        Raises:
            ToolRegistrationError: If arguments are missing or the tool already exists.
        """
        if isinstance(name_or_tool, ToolSchema):
            tool = name_or_tool
        else:
            if description is None or args_model is None:
                raise ToolRegistrationError("If passing name as string, description and args_model are required.")
            tool = self.build_schema(name_or_tool, description, args_model)

        if tool.name in self.tools:
            msg = f"Tool '{tool.name}' is already registered."
            logger.error(msg)
            raise ToolRegistrationError(msg)

        self.tools[tool.name] = tool
        logger.debug(f"Registered tool: '{tool.name}'")

    def register_all(self, tools: Iterable[ToolSchema]) -> None:
        for tool in tools:
            self.register(tool)

    def unregister(self, tool_name: str) -> None:
        """Unregister a tool from the registry.

        Args:
            tool_name: The name of the tool to remove.

        Raises:
            ToolNotFoundError: If the tool does not exist in the registry.
        """
        if tool_name not in self.tools:
            raise ToolNotFoundError(f"Tool '{tool_name}' not found in the registry.")
        del self.tools[tool_name]

    def get(self, tool_name: str) -> ToolSchema:
        try:
            return self.tools[tool_name]
        except KeyError:
            raise ToolNotFoundError(f"Tool '{tool_name}' not found in the registry.") from None

    def describe(self) -> List[Dict[str, Any]]:
        """Vendor-neutral view of the catalog, for the executor and the UI."""
        return [
            {"name": tool.name, "description": tool.description, "parameters": tool.parameters}
            for tool in self.tools.values()
        ]

    @property
    @abstractmethod
    def tool_object(self) -> Optional[List[Dict[str, Any]]]:
        """Constructs the tool list in the vendor's request shape.

        Returns:
            The vendor-specific tool list, or None if no tools are registered.
        """
        pass

    @staticmethod
    def build_schema(name: str, description: str, args_model: Type[BaseModel]) -> ToolSchema:
        """Generate a ToolSchema from a Pydantic argument model.

        Args:
            name: Unique tool name.
            description: What the tool does.
            args_model: Pydantic model describing the tool input.

        Returns:
            A ToolSchema with a resolved, sanitized parameter schema.
        """
        if not description.strip():
            raise ToolRegistrationError(f"Tool '{name}' needs a description. LLMs rely on it to pick tools.")

        parameters = SchemaValidator.schema_for_model(args_model)
        return ToolSchema(name=name, description=description, parameters=parameters, args_model=args_model)

from typing import Any, Dict, Optional, Type

from pydantic import BaseModel, ConfigDict, Field


class ToolSchema(BaseModel):
    """
    Represents one workbook operation the model may request.

    Attributes:
        name: The unique name of the tool.
        description: A brief description of what the tool does.
        parameters: JSON schema describing the tool input, already resolved and sanitized.
        args_model: The Pydantic model the parameter schema was generated from.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    parameters: Dict[str, Any] = Field(default_factory=lambda: {"type": "object", "properties": {}})
    args_model: Optional[Type[BaseModel]] = None

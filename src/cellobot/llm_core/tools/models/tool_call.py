"""Data models for tool-call requests and their results."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass(frozen=True)
class ToolCallRequest:
    """A normalized tool call emitted by the model.

    ``id`` is assigned by the vendor and is unique within a turn.
    """

    id: str
    name: str
    input: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "input": self.input}


@dataclass(frozen=True)
class ToolCallResult:
    """The outcome of executing a tool call, as reported by the workbook executor."""

    id: str
    output: Any = None

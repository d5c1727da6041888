"""
Custom exception classes for the CelloBot backend.

This module defines the error taxonomy of a single conversation turn: configuration
problems, vendor failures, malformed tool-call arguments, rejected requests, and the
errors raised while building the tool schema registry.
"""

from typing import Optional


class CelloBotError(Exception):
    """Base exception for all backend errors."""

    pass


class ConfigurationError(CelloBotError):
    """Raised when a provider credential or setting is missing or invalid."""

    pass


class VendorError(CelloBotError):
    """Raised when the model provider fails (network, 4xx, 5xx). Never retried."""

    pass


class MalformedToolArguments(CelloBotError):
    """Raised when accumulated tool-call argument fragments do not parse to a JSON object."""

    def __init__(self, message: str, tool_name: Optional[str] = None, index: Optional[int] = None) -> None:
        super().__init__(message)
        self.tool_name = tool_name
        self.index = index


class InvalidRequest(CelloBotError):
    """Raised when an inbound request is rejected before any vendor call."""

    pass


class InvalidContinuation(InvalidRequest):
    """Raised when tool results do not match the pending tool calls of the prior history."""

    pass


class ToolRegistrationError(CelloBotError):
    """Raised when there is an error registering a tool."""

    pass


class ToolNotFoundError(CelloBotError):
    """Raised when a requested tool is not found in the registry."""

    pass


class ToolValidationError(CelloBotError):
    """Raised when a tool parameter schema is invalid."""

    pass


class ToolExecutionError(CelloBotError):
    """Raised by the in-process execution loop when a workbook operation fails or times out."""

    pass

"""Export the error taxonomy shared by adapters, the tool loop, and the transport."""

from .exceptions import (
    CelloBotError,
    ConfigurationError,
    VendorError,
    MalformedToolArguments,
    InvalidRequest,
    InvalidContinuation,
    ToolRegistrationError,
    ToolNotFoundError,
    ToolValidationError,
    ToolExecutionError,
)

__all__ = [
    "CelloBotError",
    "ConfigurationError",
    "VendorError",
    "MalformedToolArguments",
    "InvalidRequest",
    "InvalidContinuation",
    "ToolRegistrationError",
    "ToolNotFoundError",
    "ToolValidationError",
    "ToolExecutionError",
]

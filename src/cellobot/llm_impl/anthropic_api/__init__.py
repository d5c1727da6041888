from .adapter import AnthropicAdapter
from .registry import AnthropicToolRegistry

__all__ = ["AnthropicAdapter", "AnthropicToolRegistry"]

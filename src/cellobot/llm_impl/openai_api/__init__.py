from .adapter import OpenAIAdapter
from .registry import OpenAIToolRegistry

__all__ = ["OpenAIAdapter", "OpenAIToolRegistry"]

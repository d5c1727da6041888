"""Expose provider-agnostic message model types shared by adapters and the transport."""

from .models import ChatMessage, to_history, latest_user_text

__all__ = [
    "ChatMessage",
    "to_history",
    "latest_user_text",
]

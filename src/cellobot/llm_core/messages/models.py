"""Provider-agnostic message models for chat history."""

from typing import Any, Dict, List, Literal, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict


class ChatMessage(BaseModel):
    """A single entry of the conversation history.

    Vendor-specific keys (``tool_calls`` and ``tool_call_id`` for OpenAI, block lists for
    Anthropic) are kept as extra fields so the history can be echoed back verbatim.

    Attributes:
        role: Role associated with the message.
        content: Text payload or a list of structured content blocks.
    """

    model_config = ConfigDict(extra="allow")

    role: Literal["user", "assistant", "tool"]
    content: Union[str, List[Dict[str, Any]], None] = None

    def to_wire(self) -> Dict[str, Any]:
        """Return the message as a plain dict, exactly as the caller supplied it."""
        return self.model_dump(exclude_unset=True)


def to_history(messages: Sequence[ChatMessage]) -> List[Dict[str, Any]]:
    """Convert validated messages into the plain dict history the adapters consume."""
    return [msg.to_wire() for msg in messages]


def latest_user_text(history: Sequence[Dict[str, Any]]) -> Optional[str]:
    """Return the text of the most recent user-authored message, if it has plain text content."""
    for msg in reversed(history):
        if msg.get("role") != "user":
            continue
        content = msg.get("content")
        if isinstance(content, str):
            return content
        if isinstance(content, list):
            texts = [b.get("text", "") for b in content if isinstance(b, dict) and b.get("type") == "text"]
            if texts:
                return "\n".join(texts)
    return None

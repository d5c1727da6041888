"""Map the client's model selector onto a provider and a vendor model id."""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional


class Provider(str, Enum):
    ANTHROPIC = "anthropic"
    OPENAI = "openai"


@dataclass(frozen=True)
class ResolvedModel:
    provider: Provider
    model_id: str


DEFAULT_MODEL = ResolvedModel(Provider.ANTHROPIC, "claude-sonnet-4-5-20250514")

_SELECTORS: Dict[str, ResolvedModel] = {
    "claude-opus": ResolvedModel(Provider.ANTHROPIC, "claude-opus-4-20250918"),
    "claude-sonnet": DEFAULT_MODEL,
    "claude": DEFAULT_MODEL,
    "anthropic": DEFAULT_MODEL,
    "openai-4o": ResolvedModel(Provider.OPENAI, "gpt-4o"),
    "gpt-4o": ResolvedModel(Provider.OPENAI, "gpt-4o"),
    "openai-4o-mini": ResolvedModel(Provider.OPENAI, "gpt-4o-mini"),
    "openai": ResolvedModel(Provider.OPENAI, "gpt-4o-mini"),
    "gpt-4o-mini": ResolvedModel(Provider.OPENAI, "gpt-4o-mini"),
}


def resolve(selector: Optional[str]) -> ResolvedModel:
    """Resolve a selector such as ``"claude-opus"`` or ``"openai"``.

    Never fails: unknown, empty or missing selectors fall back to the default model.
    """
    if not isinstance(selector, str):
        return DEFAULT_MODEL
    return _SELECTORS.get(selector.strip().lower(), DEFAULT_MODEL)


def resolve_request(
    model: Optional[str] = None,
    provider: Optional[str] = None,
    model_id: Optional[str] = None,
) -> ResolvedModel:
    """Resolve the model fields of a chat request.

    ``model`` is tried first, then ``provider`` as a selector. An explicit ``model_id``
    overrides the resolved id but keeps the resolved provider.
    """
    resolved = resolve(model or provider)
    if model_id and model_id.strip():
        return ResolvedModel(resolved.provider, model_id.strip())
    return resolved

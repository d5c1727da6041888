from typing import Any, Optional

from anthropic import AsyncAnthropic
from openai import AsyncOpenAI

from cellobot.config import Settings
from cellobot.llm_core.base import ProviderAdapter
from cellobot.llm_core.exceptions import ConfigurationError
from .anthropic_api import AnthropicAdapter
from .openai_api import OpenAIAdapter
from .resolver import Provider


def create_adapter(provider: str, settings: Settings, client: Optional[Any] = None) -> ProviderAdapter:
    """
    Build the adapter for a provider.

    Args:
        provider: "anthropic" or "openai".
        settings: Supplies credentials and the output token cap.
        client: Optional preconstructed vendor client. Skips the credential check.

    Returns:
        The adapter for this request.

    Raises:
        ConfigurationError: If the provider is unknown or its credential is missing.
    """
    try:
        selected = Provider(provider)
    except ValueError:
        raise ConfigurationError(f"Unknown provider '{provider}'.") from None

    if selected is Provider.ANTHROPIC:
        if client is None:
            if not settings.anthropic_api_key:
                raise ConfigurationError("ANTHROPIC_API_KEY is not configured.")
            client = AsyncAnthropic(api_key=settings.anthropic_api_key)
        return AnthropicAdapter(client, max_tokens=settings.max_tokens)

    if client is None:
        if not settings.openai_api_key:
            raise ConfigurationError("OPENAI_API_KEY is not configured.")
        client = AsyncOpenAI(api_key=settings.openai_api_key)
    return OpenAIAdapter(client, max_tokens=settings.max_tokens)

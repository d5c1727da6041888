"""Runtime settings, read from the environment (and a local ``.env`` file)."""

import os
from typing import Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from .llm_core.exceptions import ConfigurationError
from .llm_core.tools.tool_loop import MAX_TOOL_ROUNDS

_ENV_FIELDS = {
    "anthropic_api_key": "ANTHROPIC_API_KEY",
    "openai_api_key": "OPENAI_API_KEY",
    "max_tokens": "CELLOBOT_MAX_TOKENS",
    "max_tool_rounds": "CELLOBOT_MAX_TOOL_ROUNDS",
    "tool_timeout": "CELLOBOT_TOOL_TIMEOUT",
    "skills_path": "CELLOBOT_SKILLS_PATH",
    "log_level": "CELLOBOT_LOG_LEVEL",
    "host": "HOST",
    "port": "PORT",
}


class Settings(BaseModel):
    """
    Backend settings.

    Attributes:
        anthropic_api_key: Credential for the Anthropic Messages API.
        openai_api_key: Credential for OpenAI chat completions.
        max_tokens: Output token cap per model turn.
        max_tool_rounds: Consecutive tool-call rounds before a conversation is ended.
        tool_timeout: Seconds a workbook operation may take in the in-process loop.
        skills_path: Optional JSON file with skill snippets for the system prompt.
        log_level: Level passed to ``setup_logging``.
        host: Interface the server binds to.
        port: Port the server binds to.
    """

    anthropic_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    max_tokens: int = Field(default=4096, gt=0)
    max_tool_rounds: int = Field(default=MAX_TOOL_ROUNDS, gt=0)
    tool_timeout: float = Field(default=180.0, gt=0)
    skills_path: Optional[str] = None
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = Field(default=3000, ge=1, le=65535)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, load_dotenv_file: bool = True) -> "Settings":
        """Build settings from environment variables. Blank values count as unset.

        Raises:
            ConfigurationError: If a value cannot be parsed (e.g. a non-numeric port).
        """
        if environ is None:
            if load_dotenv_file:
                load_dotenv()
            environ = os.environ

        values = {}
        for field_name, env_name in _ENV_FIELDS.items():
            raw = environ.get(env_name)
            if raw is not None and raw.strip():
                values[field_name] = raw.strip()

        try:
            return cls(**values)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid configuration: {exc}") from exc

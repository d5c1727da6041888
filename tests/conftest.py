from typing import Any, Iterator

import pytest

from cellobot.config import Settings
from cellobot.llm_impl import reset_tool_catalog


@pytest.fixture(autouse=True)
def fresh_tool_catalog() -> Iterator[None]:
    reset_tool_catalog()
    yield
    reset_tool_catalog()


@pytest.fixture
def settings() -> Settings:
    return Settings(anthropic_api_key="test-anthropic", openai_api_key="test-openai")


@pytest.fixture
def user_history() -> Any:
    return [{"role": "user", "content": "Sum column A"}]

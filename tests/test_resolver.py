import pytest

from cellobot.llm_impl.resolver import DEFAULT_MODEL, Provider, ResolvedModel, resolve, resolve_request


@pytest.mark.parametrize(
    "selector, expected",
    [
        ("claude-opus", (Provider.ANTHROPIC, "claude-opus-4-20250918")),
        ("claude-sonnet", (Provider.ANTHROPIC, "claude-sonnet-4-5-20250514")),
        ("claude", (Provider.ANTHROPIC, "claude-sonnet-4-5-20250514")),
        ("anthropic", (Provider.ANTHROPIC, "claude-sonnet-4-5-20250514")),
        ("openai-4o", (Provider.OPENAI, "gpt-4o")),
        ("gpt-4o", (Provider.OPENAI, "gpt-4o")),
        ("openai-4o-mini", (Provider.OPENAI, "gpt-4o-mini")),
        ("openai", (Provider.OPENAI, "gpt-4o-mini")),
        ("gpt-4o-mini", (Provider.OPENAI, "gpt-4o-mini")),
    ],
)
def test_resolve_known_selectors(selector: str, expected: tuple) -> None:
    assert resolve(selector) == ResolvedModel(*expected)


def test_resolve_is_case_insensitive_and_trims() -> None:
    assert resolve("  Claude-OPUS ") == resolve("claude-opus")


@pytest.mark.parametrize("selector", [None, "", "   ", "gemini", "🤖", "claude-opus-5", 42])
def test_resolve_is_total(selector) -> None:
    assert resolve(selector) == DEFAULT_MODEL


def test_resolve_request_prefers_model_over_provider() -> None:
    assert resolve_request(model="openai-4o", provider="anthropic").model_id == "gpt-4o"


def test_resolve_request_falls_back_to_provider() -> None:
    assert resolve_request(provider="openai") == ResolvedModel(Provider.OPENAI, "gpt-4o-mini")


def test_resolve_request_model_id_override_keeps_provider() -> None:
    resolved = resolve_request(model="openai", model_id="gpt-4.1")
    assert resolved == ResolvedModel(Provider.OPENAI, "gpt-4.1")


def test_resolve_request_blank_model_id_is_ignored() -> None:
    assert resolve_request(model="claude-opus", model_id="  ").model_id == "claude-opus-4-20250918"

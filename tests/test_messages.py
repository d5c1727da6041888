import pytest
from pydantic import ValidationError

from cellobot.llm_core.base import DoneEvent, ErrorEvent, TextDeltaEvent, ToolCallsEvent
from cellobot.llm_core.exceptions import InvalidContinuation, InvalidRequest
from cellobot.llm_core.messages import ChatMessage, latest_user_text, to_history
from cellobot.llm_core.tools import ToolCallResult
from cellobot.server.requests import ChatRequest


def test_chat_message_preserves_vendor_fields() -> None:
    raw = {
        "role": "assistant",
        "content": None,
        "tool_calls": [{"id": "c1", "type": "function", "function": {"name": "x", "arguments": "{}"}}],
    }
    assert ChatMessage.model_validate(raw).to_wire() == raw


def test_chat_message_does_not_add_unset_fields() -> None:
    assert to_history([ChatMessage(role="user", content="hi")]) == [{"role": "user", "content": "hi"}]
    assert ChatMessage.model_validate({"role": "tool"}).to_wire() == {"role": "tool"}


def test_chat_message_rejects_unknown_role() -> None:
    with pytest.raises(ValidationError):
        ChatMessage.model_validate({"role": "system", "content": "x"})


def test_latest_user_text_skips_tool_results() -> None:
    history = [
        {"role": "user", "content": "Make a pivot table"},
        {"role": "assistant", "content": [{"type": "tool_use", "id": "t", "name": "x", "input": {}}]},
        {"role": "user", "content": [{"type": "tool_result", "tool_use_id": "t", "content": "{}"}]},
    ]
    assert latest_user_text(history) == "Make a pivot table"
    assert latest_user_text([{"role": "user", "content": [{"type": "text", "text": "a"}]}]) == "a"
    assert latest_user_text([]) is None


def test_sse_frames() -> None:
    assert TextDeltaEvent(text="Hi").to_sse() == 'event: text_delta\ndata: {"text": "Hi"}\n\n'
    assert DoneEvent(text="ok").to_sse() == 'event: done\ndata: {"text": "ok"}\n\n'
    assert ErrorEvent(error="boom").to_sse() == 'event: error\ndata: {"error": "boom"}\n\n'
    frame = ToolCallsEvent(tool_calls=[], text="", messages=[]).to_sse()
    assert frame.startswith("event: tool_calls\n") and '"toolCalls": []' in frame


def test_only_final_events_are_terminal() -> None:
    assert not TextDeltaEvent.terminal
    assert DoneEvent.terminal and ErrorEvent.terminal and ToolCallsEvent.terminal


def test_request_aliases() -> None:
    request = ChatRequest.model_validate(
        {
            "pendingMessages": [{"role": "user", "content": "x"}],
            "toolResults": [{"id": "t1", "output": {"success": True}}],
            "modelId": "gpt-4o",
            "context": {"activeSheet": "S"},
        }
    )
    request.ensure_single_shape()

    assert request.is_continuation
    assert request.model_id == "gpt-4o"
    assert request.tool_context == {"activeSheet": "S"}
    assert request.results() == [ToolCallResult(id="t1", output={"success": True})]
    assert request.conversation() == [{"role": "user", "content": "x"}]


def test_request_tool_results_without_prior_history() -> None:
    request = ChatRequest.model_validate({"toolResults": [{"id": "t1"}]})
    with pytest.raises(InvalidContinuation, match="both"):
        request.ensure_single_shape()


@pytest.mark.parametrize(
    "body",
    [
        {"history": [], "priorHistory": [{"role": "user", "content": "x"}], "toolResults": []},
        {"message": None, "pendingMessages": [{"role": "user", "content": "x"}], "toolResults": []},
    ],
)
def test_request_empty_fresh_keys_still_conflict(body) -> None:
    with pytest.raises(InvalidContinuation, match="not both"):
        ChatRequest.model_validate(body).ensure_single_shape()


def test_request_empty_fresh_history_is_rejected() -> None:
    with pytest.raises(InvalidRequest, match="required"):
        ChatRequest.model_validate({"history": []}).ensure_single_shape()

import json
from pathlib import Path
from typing import Any, AsyncIterator, Dict, List, Tuple

import httpx
import anthropic
import pytest
from fastapi.testclient import TestClient

from cellobot.config import Settings
from cellobot.llm_core.base import DoneEvent, ErrorEvent, StreamEvent, TextDeltaEvent
from cellobot.llm_core.tools.tool_loop import MAX_TOOL_ROUNDS, ROUND_LIMIT_MESSAGE
from cellobot.llm_impl import AnthropicAdapter, OpenAIAdapter
from cellobot.server import SkillRetriever, StreamingTransport, create_app

from fakes import (
    FakeStream,
    a_text,
    a_text_start,
    anthropic_client,
    anthropic_text_turn,
    anthropic_tool_turn,
    openai_client,
    openai_text_turn,
)

Frames = List[Tuple[str, Dict[str, Any]]]


def parse_sse(body: str) -> Frames:
    frames = []
    for raw in body.split("\n\n"):
        if not raw.strip():
            continue
        fields = dict(line.split(": ", 1) for line in raw.split("\n"))
        frames.append((fields["event"], json.loads(fields["data"])))
    return frames


class Harness:
    def __init__(self, settings: Settings, anthropic_streams: List[Any] = (), openai_streams: List[Any] = ()) -> None:
        self.anthropic = anthropic_client(*anthropic_streams)
        self.openai = openai_client(*openai_streams)
        adapters = {"anthropic": AnthropicAdapter(self.anthropic), "openai": OpenAIAdapter(self.openai)}
        app = create_app(settings, adapter_factory=adapters.__getitem__, skills=SkillRetriever(None))
        self.client = TestClient(app)

    def stream(self, body: Dict[str, Any]) -> Frames:
        response = self.client.post("/stream", json=body)
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        assert response.headers["cache-control"] == "no-cache"
        assert response.headers["x-accel-buffering"] == "no"
        return parse_sse(response.text)


def fresh(text: str = "Sum column A", **extra: Any) -> Dict[str, Any]:
    return {"history": [{"role": "user", "content": text}], **extra}


def test_sum_column_a_streams_text_then_done(settings: Settings) -> None:
    harness = Harness(settings, [anthropic_text_turn("Use ", "=SUM(A:A)", ".")])

    frames = harness.stream(fresh())

    assert [name for name, _ in frames] == ["text_delta", "text_delta", "text_delta", "done"]
    assert frames[-1][1] == {"text": "Use =SUM(A:A)."}
    assert "".join(data["text"] for name, data in frames[:-1]) == frames[-1][1]["text"]


def test_tool_call_then_continuation(settings: Settings) -> None:
    write = {"sheet": "Sheet1", "range": "B1", "formulas": [["=SUM(A:A)"]]}
    harness = Harness(
        settings,
        [anthropic_tool_turn("tc1", "write_cells", write), anthropic_text_turn("Done. B1 has the total.")],
    )

    frames = harness.stream(fresh())
    assert [name for name, _ in frames] == ["tool_calls"]
    payload = frames[0][1]
    assert payload["toolCalls"] == [{"id": "tc1", "name": "write_cells", "input": write}]
    assert len(payload["messages"]) == 2

    frames = harness.stream(
        {"priorHistory": payload["messages"], "toolResults": [{"id": "tc1", "output": {"success": True}}]}
    )
    assert frames[-1] == ("done", {"text": "Done. B1 has the total."})

    sent = harness.anthropic.messages.create.call_args_list[1].kwargs["messages"]
    assert len(sent) == 3
    assert sent[-1]["content"][0] == {"type": "tool_result", "tool_use_id": "tc1", "content": '{"success": true}'}


def test_continuation_with_unknown_id_is_rejected(settings: Settings) -> None:
    harness = Harness(settings, [anthropic_tool_turn("tc1", "write_cells", {"sheet": "S", "range": "A1"})])
    messages = harness.stream(fresh())[0][1]["messages"]

    response = harness.client.post(
        "/stream", json={"priorHistory": messages, "toolResults": [{"id": "bogus", "output": {}}]}
    )

    assert response.status_code == 400
    assert "bogus" in response.json()["error"]
    assert harness.anthropic.messages.create.call_count == 1


@pytest.mark.parametrize(
    "body",
    [
        {},
        {"history": []},
        {"priorHistory": [{"role": "user", "content": "x"}]},
        {
            "history": [{"role": "user", "content": "x"}],
            "priorHistory": [{"role": "user", "content": "x"}],
            "toolResults": [],
        },
        {
            "history": [],
            "priorHistory": [
                {"role": "user", "content": "x"},
                {"role": "assistant", "content": [{"type": "tool_use", "id": "tc1", "name": "read_range", "input": {}}]},
            ],
            "toolResults": [{"id": "tc1", "output": {}}],
        },
        {"message": "", "priorHistory": [{"role": "user", "content": "x"}], "toolResults": []},
    ],
)
def test_request_shape_errors(settings: Settings, body: Dict[str, Any]) -> None:
    harness = Harness(settings)
    response = harness.client.post("/stream", json=body)
    assert response.status_code == 400
    assert "error" in response.json()
    harness.anthropic.messages.create.assert_not_called()


@pytest.mark.parametrize("raw", ["", "not json", "[1, 2]"])
def test_unreadable_body(settings: Settings, raw: str) -> None:
    response = Harness(settings).client.post("/stream", content=raw, headers={"content-type": "application/json"})
    assert response.status_code == 400


def test_invalid_message_role_is_rejected(settings: Settings) -> None:
    response = Harness(settings).client.post("/stream", json={"history": [{"role": "system", "content": "x"}]})
    assert response.status_code == 400


def test_round_limit_ends_conversation(settings: Settings) -> None:
    prior: List[Dict[str, Any]] = [{"role": "user", "content": "Fill everything"}]
    for n in range(MAX_TOOL_ROUNDS):
        if n:
            prior.append({"role": "user", "content": [{"type": "tool_result", "tool_use_id": f"t{n - 1}", "content": "{}"}]})
        prior.append({"role": "assistant", "content": [{"type": "tool_use", "id": f"t{n}", "name": "read_range", "input": {}}]})
    harness = Harness(settings, [anthropic_text_turn("never")])

    frames = harness.stream({"priorHistory": prior, "toolResults": [{"id": f"t{MAX_TOOL_ROUNDS - 1}", "output": {}}]})

    assert frames[-1] == ("done", {"text": ROUND_LIMIT_MESSAGE})
    assert sum(1 for name, _ in frames if name in ("done", "tool_calls", "error")) == 1
    harness.anthropic.messages.create.assert_not_called()


def test_malformed_tool_arguments_yield_error(settings: Settings) -> None:
    harness = Harness(settings, [anthropic_tool_turn("tc1", "write_cells", '{"sheet": "S", "range"')])

    frames = harness.stream(fresh())

    names = [name for name, _ in frames]
    assert names[-1] == "error"
    assert "tool_calls" not in names
    assert "write_cells" in frames[-1][1]["error"]


def test_vendor_failure_mid_stream_yields_error(settings: Settings) -> None:
    request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
    stream = FakeStream([a_text_start(), a_text("Let me ")], error=anthropic.APIConnectionError(request=request))
    harness = Harness(settings, [stream])

    frames = harness.stream(fresh())

    assert frames[0] == ("text_delta", {"text": "Let me "})
    assert frames[-1][0] == "error"
    assert len(frames) == 2
    assert stream.closed


def test_missing_credential_yields_error_event() -> None:
    app = create_app(Settings(), skills=SkillRetriever(None))
    response = TestClient(app).post("/stream", json=fresh())

    assert response.status_code == 200
    assert parse_sse(response.text) == [("error", {"error": "ANTHROPIC_API_KEY is not configured."})]


def test_model_selector_routes_to_openai(settings: Settings) -> None:
    harness = Harness(settings, openai_streams=[openai_text_turn("Hi from 4o.")])

    frames = harness.stream(fresh(model="openai-4o"))

    assert frames[-1] == ("done", {"text": "Hi from 4o."})
    assert harness.openai.chat.completions.create.call_args.kwargs["model"] == "gpt-4o"
    harness.anthropic.messages.create.assert_not_called()


def test_model_id_override(settings: Settings) -> None:
    harness = Harness(settings, [anthropic_text_turn("ok")])
    harness.stream(fresh(model="claude", modelId="claude-3-5-haiku-latest"))
    assert harness.anthropic.messages.create.call_args.kwargs["model"] == "claude-3-5-haiku-latest"


def test_legacy_aliases_and_context_in_prompt(settings: Settings) -> None:
    harness = Harness(settings, [anthropic_text_turn("ok")])
    context = {"activeSheet": "Budget", "pinnedRanges": [{"address": "Budget!A1:C3"}]}

    harness.stream({"messages": [{"role": "user", "content": "Explain"}], "context": context})

    system = harness.anthropic.messages.create.call_args.kwargs["system"]
    assert '"activeSheet": "Budget"' in system
    assert "User-pinned context" in system
    assert "Budget!A1:C3" in system


def test_legacy_single_message(settings: Settings) -> None:
    harness = Harness(settings, [anthropic_text_turn("ok")])
    harness.stream({"message": "Hello"})
    assert harness.anthropic.messages.create.call_args.kwargs["messages"] == [{"role": "user", "content": "Hello"}]


def test_chat_endpoint_text_and_tool_calls(settings: Settings) -> None:
    harness = Harness(
        settings,
        [anthropic_text_turn("Use =SUM(A:A)."), anthropic_tool_turn("tc1", "read_range", {"sheet": "S", "range": "A1"})],
    )

    text = harness.client.post("/chat", json=fresh())
    assert text.status_code == 200
    assert text.json() == {"type": "text", "text": "Use =SUM(A:A).", "messages": fresh()["history"]}

    tools = harness.client.post("/chat", json=fresh("Read A1"))
    body = tools.json()
    assert body["type"] == "tool_calls"
    assert body["toolCalls"][0]["id"] == "tc1"
    assert len(body["messages"]) == 2


def test_chat_endpoint_errors(settings: Settings) -> None:
    harness = Harness(settings, [anthropic_tool_turn("tc1", "write_cells", "[1]")])
    assert harness.client.post("/chat", json={}).status_code == 400

    response = harness.client.post("/chat", json=fresh())
    assert response.status_code == 500
    assert "JSON object" in response.json()["error"]


@pytest.mark.parametrize("fmt, key", [("anthropic", "input_schema"), ("openai", "function"), ("generic", "parameters")])
def test_tools_endpoint(settings: Settings, fmt: str, key: str) -> None:
    response = Harness(settings).client.get("/tools", params={"format": fmt})
    body = response.json()
    assert response.status_code == 200
    assert body["format"] == fmt
    assert len(body["tools"]) == 19
    assert key in body["tools"][0]


def test_tools_endpoint_rejects_unknown_format(settings: Settings) -> None:
    assert Harness(settings).client.get("/tools", params={"format": "gemini"}).status_code == 400


def test_health(settings: Settings) -> None:
    body = Harness(settings).client.get("/health").json()
    assert body["status"] == "ok"
    assert "timestamp" in body


@pytest.mark.asyncio
async def test_encoding_stops_after_first_terminal_event() -> None:
    async def events() -> AsyncIterator[StreamEvent]:
        yield TextDeltaEvent(text="a")
        yield DoneEvent(text="a")
        yield ErrorEvent(error="late")

    frames = [frame async for frame in StreamingTransport.encode(events())]

    assert parse_sse("".join(frames)) == [("text_delta", {"text": "a"}), ("done", {"text": "a"})]


def test_skills_are_read_when_app_is_created(settings: Settings, tmp_path: Path) -> None:
    path = tmp_path / "skills.json"
    path.write_text(json.dumps([{"name": "Pivots", "tags": ["pivot"], "content": "Group by."}]), encoding="utf-8")
    client = anthropic_client(anthropic_text_turn("ok"))
    app = create_app(settings, adapter_factory=lambda provider: AnthropicAdapter(client), skills=SkillRetriever(path))

    path.unlink()
    TestClient(app).post("/stream", json=fresh("Build a pivot"))

    assert "--- [Pivots] ---\nGroup by." in client.messages.create.call_args.kwargs["system"]

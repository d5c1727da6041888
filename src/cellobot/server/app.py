from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import Response
from pydantic import ValidationError

from cellobot.config import Settings
from cellobot.llm_core.base import ToolCallsRequested
from cellobot.llm_core.exceptions import CelloBotError, ConfigurationError, InvalidRequest
from cellobot.llm_core.logger import get_logger
from cellobot.llm_core.messages import latest_user_text
from cellobot.llm_core.tools.tool_loop import AdapterFactory, ToolLoopController, TurnPlan
from cellobot.llm_impl import create_adapter, list_tools, resolve_request, tool_schemas_for

from .prompt import SkillRetriever, build_system_prompt
from .requests import ChatRequest
from .transport import StreamingTransport

logger = get_logger(__name__)

_TOOL_FORMATS = ("anthropic", "openai", "generic")


def _json_response(status: int, payload: dict[str, Any]) -> Response:
    data = json.dumps(payload, ensure_ascii=True).encode("utf-8")
    return Response(
        content=data,
        status_code=status,
        media_type="application/json; charset=utf-8",
        headers={"Cache-Control": "no-cache, no-store, must-revalidate"},
    )


async def _read_json_dict(request: Request) -> tuple[dict[str, Any] | None, Response | None]:
    raw = await request.body()
    if not raw:
        return None, _json_response(400, {"error": "Request body is required."})
    try:
        decoded = json.loads(raw)
    except json.JSONDecodeError:
        return None, _json_response(400, {"error": "Request body is not valid JSON."})
    if not isinstance(decoded, dict):
        return None, _json_response(400, {"error": "Request body must be a JSON object."})
    return decoded, None


def create_app(
    settings: Settings | None = None,
    adapter_factory: AdapterFactory | None = None,
    skills: SkillRetriever | None = None,
) -> FastAPI:
    """Create the FastAPI app serving the chat endpoints.

    Args:
        settings: Runtime settings. Read from the environment when omitted.
        adapter_factory: Builds the adapter for a provider name. Defaults to real vendor clients.
        skills: Skill snippet source for the system prompt. Defaults to ``settings.skills_path``.
    """
    settings = settings or Settings.from_env()
    if adapter_factory is None:

        def adapter_factory(provider: str):
            return create_adapter(provider, settings)

    skills = skills or SkillRetriever(settings.skills_path)
    # skills are read once, at startup
    skills.load()
    controller = ToolLoopController(adapter_factory, tool_source=tool_schemas_for, max_rounds=settings.max_tool_rounds)
    transport = StreamingTransport(controller)

    app = FastAPI(title="CelloBot")
    app.state.settings = settings
    app.state.controller = controller
    app.state.skills = skills

    async def _parse(request: Request) -> tuple[ChatRequest | None, Response | None]:
        body, error = await _read_json_dict(request)
        if error is not None:
            return None, error
        try:
            chat = ChatRequest.model_validate(body)
            chat.ensure_single_shape()
        except ValidationError as exc:
            logger.warning(f"Rejected malformed request: {exc}")
            return None, _json_response(400, {"error": f"Invalid request: {exc}"})
        except InvalidRequest as exc:
            logger.warning(f"Rejected request: {exc}")
            return None, _json_response(400, {"error": str(exc)})
        return chat, None

    def _plan(chat: ChatRequest) -> TurnPlan:
        resolved = resolve_request(chat.model, chat.provider, chat.model_id)
        history = chat.conversation()
        system_prompt = build_system_prompt(chat.tool_context, latest_user_text(history), skills)
        return controller.plan(
            system_prompt, history, resolved.provider.value, resolved.model_id, tool_results=chat.results()
        )

    @app.post("/stream")
    async def stream(request: Request) -> Response:
        chat, error = await _parse(request)
        if error is not None:
            return error

        try:
            plan = _plan(chat)
        except InvalidRequest as exc:
            logger.warning(f"Rejected request: {exc}")
            return _json_response(400, {"error": str(exc)})
        except ConfigurationError as exc:
            logger.error(f"Configuration error: {exc}")
            return transport.response(transport.error_only(str(exc)))

        return transport.response(transport.events(plan))

    @app.post("/chat")
    async def chat_endpoint(request: Request) -> Response:
        chat, error = await _parse(request)
        if error is not None:
            return error

        try:
            plan = _plan(chat)
            result = await controller.run(plan)
        except InvalidRequest as exc:
            logger.warning(f"Rejected request: {exc}")
            return _json_response(400, {"error": str(exc)})
        except CelloBotError as exc:
            logger.error(f"Chat failed: {exc} ({type(exc).__name__})")
            return _json_response(500, {"error": str(exc)})
        except Exception as exc:
            logger.error("Chat error", exc_info=True)
            return _json_response(500, {"error": str(exc) or "Failed to get AI response"})

        if isinstance(result, ToolCallsRequested):
            return _json_response(
                200,
                {
                    "type": "tool_calls",
                    "toolCalls": [call.to_dict() for call in result.tool_calls],
                    "text": result.text,
                    "messages": result.updated_history,
                },
            )
        return _json_response(200, {"type": "text", "text": result.text, "messages": plan.history})

    @app.get("/tools")
    async def tools(request: Request) -> Response:
        tool_format = (request.query_params.get("format") or "generic").lower()
        if tool_format not in _TOOL_FORMATS:
            return _json_response(400, {"error": f"Unknown format '{tool_format}'.", "formats": list(_TOOL_FORMATS)})
        return _json_response(200, {"format": tool_format, "tools": list_tools(tool_format)})  # type: ignore[arg-type]

    @app.get("/health")
    async def health() -> Response:
        return _json_response(200, {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()})

    return app

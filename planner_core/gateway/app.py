"""Completion Gateway（FastAPI）。

接收前端的 {type, context}，按 TaskType 选择 system prompt，
转发到上游 chat-completions（stream=true），并把上游的 SSE 字节流（已解压）逐块转发。
所有业务错误统一返回 {"error": message}，状态码取 BusinessError.http_status。
"""

import json
import logging
from typing import Any, Dict, Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse

from planner_core.config.settings import settings
from planner_core.domain.exceptions import BusinessError, UnauthorizedError, ValidationError
from planner_core.domain.models import TaskType
from planner_core.gateway.upstream import UpstreamCompletionClient
from planner_core.infrastructure.logging.logger import log_event, logger

CORS_ALLOW_HEADERS = ["authorization", "x-client-info", "apikey", "content-type"]


def _error_response(exc: BusinessError) -> JSONResponse:
    return JSONResponse({"error": exc.message}, status_code=exc.http_status)


def _check_auth(request: Request, cfg) -> None:
    expected = getattr(cfg, "supabase_publishable_key", None)
    if not expected:
        return
    if request.headers.get("authorization") != f"Bearer {expected}":
        raise UnauthorizedError(code="UNAUTHORIZED", message="Unauthorized", http_status=401)


async def _read_body(request: Request) -> Dict[str, Any]:
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationError(code="INVALID_BODY", message="Request body must be valid JSON")
    if not isinstance(body, dict):
        raise ValidationError(code="INVALID_BODY", message="Request body must be a JSON object")
    context = body.get("context")
    if not isinstance(context, str):
        raise ValidationError(code="INVALID_CONTEXT", message="context must be a string")
    return body


def create_app(cfg=settings, *, transport: Optional[httpx.AsyncBaseTransport] = None) -> FastAPI:
    """构造 Gateway 应用；transport 用于测试时替换上游。"""

    app = FastAPI(title="planner-core gateway")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=CORS_ALLOW_HEADERS,
    )
    upstream = UpstreamCompletionClient(cfg, transport=transport)

    @app.get("/health")
    async def health() -> Dict[str, str]:
        return {"status": "ok"}

    @app.post(cfg.ai_function_path)
    async def ai_lesson_planner(request: Request):
        log_ctx: Dict[str, Any] = {"component": "gateway", "path": request.url.path}
        try:
            _check_auth(request, cfg)
            body = await _read_body(request)
            task_type = TaskType.parse(body.get("type"))
            log_ctx["task_type"] = task_type.value
            stream = await upstream.open_stream(task_type, body["context"])
        except BusinessError as e:
            log_event(logger, logging.WARNING, "Gateway request rejected", log_ctx, code=e.code, status=e.http_status)
            return _error_response(e)
        except Exception as e:
            logger.error(f"ai-lesson-planner error: {e!r}", exc_info=True, extra={"extra": log_ctx})
            return JSONResponse({"error": str(e) or "Unknown error"}, status_code=500)

        log_event(logger, logging.INFO, "Relaying upstream stream", log_ctx)
        return StreamingResponse(stream.aiter_bytes(), media_type="text/event-stream")

    return app

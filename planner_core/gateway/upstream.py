"""上游 chat-completions 适配器。

负责：

1. 根据 TaskType 选择 system prompt，构造 OpenAI 风格的流式请求。
2. 调用上游并把 429 / 402 / 其他错误映射为 BusinessError。
3. 成功时不解析内容，把解开 Content-Encoding 后的 SSE 字节流转发给调用方（text/event-stream）。
"""

import logging
from typing import AsyncIterator, Dict, Optional

import httpx

from planner_core.config.settings import settings
from planner_core.domain.exceptions import (
    ApiError,
    CreditsExhaustedError,
    NetworkError,
    RateLimitError,
    ValidationError,
)
from planner_core.domain.models import TaskType
from planner_core.infrastructure.logging.logger import log_event, logger
from planner_core.prompts import load_system_prompt

RATE_LIMIT_MESSAGE = "Rate limit exceeded. Please try again shortly."
CREDITS_MESSAGE = "AI credits exhausted. Please add credits in Settings."
UPSTREAM_ERROR_MESSAGE = "AI service error"


class UpstreamStream:
    """一个已打开的上游流式响应，迭代结束或出错时自动关闭连接。"""

    def __init__(self, client: httpx.AsyncClient, response: httpx.Response):
        self._client = client
        self._response = response

    async def aiter_bytes(self) -> AsyncIterator[bytes]:
        try:
            # aiter_bytes 会解开 Content-Encoding（gzip 等），下游拿到的是明文 SSE
            async for chunk in self._response.aiter_bytes():
                yield chunk
        finally:
            await self.aclose()

    async def aclose(self) -> None:
        await self._response.aclose()
        await self._client.aclose()


class UpstreamCompletionClient:
    """第三方 AI Gateway 客户端。"""

    name = "ai-gateway"

    def __init__(self, cfg=settings, *, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._settings = cfg
        self._transport = transport

    def build_payload(self, task_type: TaskType, context: str) -> Dict[str, object]:
        return {
            "model": self._settings.gateway_model,
            "messages": [
                {"role": "system", "content": load_system_prompt(task_type)},
                {"role": "user", "content": context},
            ],
            "stream": True,
        }

    async def open_stream(self, task_type: TaskType, context: str) -> UpstreamStream:
        api_key = getattr(self._settings, "gateway_api_key", None)
        if not api_key:
            raise ValidationError(
                code="MISSING_API_KEY",
                message="GATEWAY_API_KEY is not configured",
                http_status=500,
            )
        payload = self.build_payload(task_type, context)
        timeout = httpx.Timeout(self._settings.http_timeout, read=self._settings.stream_read_timeout)
        client = httpx.AsyncClient(timeout=timeout, transport=self._transport, trust_env=False)
        try:
            req = client.build_request(
                "POST",
                self._settings.gateway_upstream_url,
                json=payload,
                headers={
                    "Authorization": f"Bearer {api_key}",
                    "Content-Type": "application/json",
                },
            )
            resp = await client.send(req, stream=True)
        except httpx.RequestError as e:
            await client.aclose()
            raise NetworkError(code="NETWORK_ERROR", message=str(e) or type(e).__name__, http_status=500)

        if 200 <= resp.status_code < 300:
            return UpstreamStream(client, resp)

        body = await resp.aread()
        await resp.aclose()
        await client.aclose()
        if resp.status_code == 429:
            raise RateLimitError(code="RATE_LIMIT", message=RATE_LIMIT_MESSAGE, http_status=429)
        if resp.status_code == 402:
            raise CreditsExhaustedError(code="CREDITS_EXHAUSTED", message=CREDITS_MESSAGE, http_status=402)
        log_event(
            logger,
            logging.ERROR,
            "AI gateway error",
            {"component": "upstream", "task_type": task_type.value},
            upstream_status=resp.status_code,
            body_preview=body.decode("utf-8", errors="replace")[:500],
        )
        raise ApiError(
            code="UPSTREAM_ERROR",
            message=UPSTREAM_ERROR_MESSAGE,
            http_status=500,
            upstream_status=resp.status_code,
        )

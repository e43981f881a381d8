"""AI 流式生成客户端。

调用链：

    generate(task_type, context)
      -> POST {type, context} 到 ai-lesson-planner 端点
      -> ChunkDecoder / EventLineParser / DeltaAccumulator 循环
      -> 每次追加增量后把累积文本写入 StreamStore

失败（网络、非 2xx、读取中断）统一落到 GenerationFailure，
state.result 为 "Error: <message>"，不会有异常抛给调用方。
"""

import json
import logging
import time
from contextlib import aclosing
from typing import AsyncIterator, Callable, Dict, Optional, Union

import httpx

from planner_core.client.store import Listener, StreamStore
from planner_core.config.settings import settings
from planner_core.domain.exceptions import (
    ApiError,
    BusinessError,
    CreditsExhaustedError,
    NetworkError,
    RateLimitError,
)
from planner_core.domain.models import (
    GenerationFailure,
    GenerationOutcome,
    GenerationSuccess,
    StreamRequest,
    StreamState,
    TaskType,
)
from planner_core.infrastructure.logging.logger import log_event, logger
from planner_core.streaming import ChunkDecoder, DeltaAccumulator, EventLineParser

DEFAULT_ERROR_MESSAGE = "AI request failed"
SUPERSEDED_MESSAGE = "superseded"


class AIStreamClient:
    """Stream Requester：驱动一次请求/响应周期并暴露 {result, is_loading}。

    同一个实例可以反复 generate。并发调用时后发起的调用会“接管”状态：
    旧调用在下一个数据块到达时停止读取并关闭连接，之后不再写 state，
    也不会改动 is_loading，返回 GenerationFailure("superseded")。
    """

    def __init__(
        self,
        cfg=settings,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        store: Optional[StreamStore] = None,
    ):
        self._settings = cfg
        self._transport = transport
        self._store = store or StreamStore()
        self._call_seq = 0
        self._active_call = 0
        self.last_skipped = 0

    # ---- 状态访问 ----

    @property
    def state(self) -> StreamState:
        return self._store.get_state()

    def get_state(self) -> StreamState:
        return self._store.get_state()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        return self._store.subscribe(listener)

    def reset(self) -> None:
        """清空可见结果，不影响 is_loading。

        进行中的调用持有自己的累加器，下一次增量到达时会重新发布完整文本。
        """

        self._store.set(result="", outcome=None)

    # ---- 生成 ----

    async def generate(self, task_type: Union[TaskType, str], context: str) -> GenerationOutcome:
        self._call_seq += 1
        call_id = self._call_seq
        self._active_call = call_id
        request = StreamRequest(task_type=task_type, context=context)
        log_ctx: Dict[str, object] = {"call_id": call_id, "task_type": request.type_value}
        start_time = time.time()

        self._store.set(is_loading=True, result="", outcome=None)
        # 每次调用独占一个累加器，被接管的旧调用不会改写新调用的计数
        accumulator = DeltaAccumulator()
        text = ""
        outcome: GenerationOutcome
        try:
            async with aclosing(
                self._stream(request, accumulator, should_stop=lambda: not self._is_current(call_id))
            ) as deltas:
                async for delta in deltas:
                    text += delta
                    if self._is_current(call_id):
                        self._store.set(result=text)
            if self._is_current(call_id):
                outcome = GenerationSuccess(text=text)
            else:
                outcome = GenerationFailure(message=SUPERSEDED_MESSAGE)
        except BusinessError as e:
            outcome = GenerationFailure(message=e.message)
            log_event(logger, logging.WARNING, "Generation failed", log_ctx, code=e.code, error=e.message)
        except Exception as e:
            outcome = GenerationFailure(message=str(e) or type(e).__name__)
            logger.error(
                f"Generation failed unexpectedly: {e!r}",
                exc_info=True,
                extra={"extra": log_ctx},
            )

        if not self._is_current(call_id):
            log_event(logger, logging.INFO, "Generation superseded", log_ctx)
            return GenerationFailure(message=SUPERSEDED_MESSAGE)

        self.last_skipped = accumulator.skipped
        if isinstance(outcome, GenerationFailure):
            self._store.set(is_loading=False, result=outcome.display_text, outcome=outcome)
        else:
            self._store.set(is_loading=False, result=outcome.text, outcome=outcome)
        log_event(
            logger,
            logging.INFO,
            "Generation settled",
            log_ctx,
            kind=outcome.kind,
            chars=len(text),
            skipped_lines=accumulator.skipped,
            duration_ms=int((time.time() - start_time) * 1000),
        )
        return outcome

    async def iter_deltas(self, task_type: Union[TaskType, str], context: str) -> AsyncIterator[str]:
        """逐个产出文本增量，不触碰 state；失败时抛出 BusinessError 子类。"""

        request = StreamRequest(task_type=task_type, context=context)
        async with aclosing(self._stream(request, DeltaAccumulator())) as deltas:
            async for delta in deltas:
                yield delta

    def _is_current(self, call_id: int) -> bool:
        return self._active_call == call_id

    async def _stream(
        self,
        request: StreamRequest,
        accumulator: DeltaAccumulator,
        should_stop: Optional[Callable[[], bool]] = None,
    ) -> AsyncIterator[str]:
        decoder = ChunkDecoder()
        parser = EventLineParser()
        timeout = httpx.Timeout(self._settings.http_timeout, read=self._settings.stream_read_timeout)
        try:
            async with httpx.AsyncClient(timeout=timeout, transport=self._transport, trust_env=False) as client:
                async with client.stream(
                    "POST",
                    self._settings.ai_function_url,
                    json=request.to_payload(),
                    headers=self._headers(),
                ) as resp:
                    await self._raise_for_response(resp)
                    async for chunk in resp.aiter_bytes():
                        if should_stop is not None and should_stop():
                            return
                        for payload in parser.feed(decoder.feed(chunk)):
                            delta = accumulator.apply(payload)
                            if delta:
                                yield delta
                    for payload in parser.feed(decoder.flush()):
                        delta = accumulator.apply(payload)
                        if delta:
                            yield delta
                    if parser.pending:
                        log_event(
                            logger,
                            logging.DEBUG,
                            "Discarded unterminated trailing line",
                            {"task_type": request.type_value},
                            pending_preview=parser.pending[:80],
                        )
        except httpx.RequestError as e:
            raise NetworkError(code="NETWORK_ERROR", message=str(e) or type(e).__name__)

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        key = getattr(self._settings, "supabase_publishable_key", None)
        if key:
            headers["Authorization"] = f"Bearer {key}"
        return headers

    @staticmethod
    async def _raise_for_response(resp: httpx.Response) -> None:
        """非 2xx 或没有 body（204）时解析 {"error": ...} 并抛出。"""

        if 200 <= resp.status_code < 300 and resp.status_code != 204:
            return
        message = DEFAULT_ERROR_MESSAGE
        body = await resp.aread()
        try:
            data = json.loads(body) if body else None
        except ValueError:
            data = None
        if isinstance(data, dict) and data.get("error"):
            message = str(data["error"])
        if resp.status_code == 429:
            raise RateLimitError(code="RATE_LIMIT", message=message, http_status=429)
        if resp.status_code == 402:
            raise CreditsExhaustedError(code="CREDITS_EXHAUSTED", message=message, http_status=402)
        raise ApiError(code="API_ERROR", message=message, http_status=resp.status_code)

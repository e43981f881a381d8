"""增量文本累加器。

把每条 data 负载按 chat.completion.chunk 解析，
取出 choices[0].delta.content 追加到结果字符串。
"""

import json
import logging
from typing import Callable, Optional

from planner_core.domain.models import DeltaPayload
from planner_core.infrastructure.logging.logger import log_event, logger

SkipHook = Callable[[str, Exception], None]


class DeltaAccumulator:
    """单次生成调用独占的累加器。

    解析失败的负载走 _skip_malformed：计数 + debug 日志 + 可选回调，
    不追加也不抛异常。坏行与“被代理拆开的半截 JSON”无法区分，两者都按可忽略处理。
    """

    def __init__(self, on_skip: Optional[SkipHook] = None):
        self._parts: list[str] = []
        self._on_skip = on_skip
        self.skipped = 0

    @property
    def text(self) -> str:
        return "".join(self._parts)

    def apply(self, payload: str) -> Optional[str]:
        """处理一条负载，返回本次追加的文本；没有文本时返回 None。"""

        try:
            data = json.loads(payload)
        except json.JSONDecodeError as e:
            self._skip_malformed(payload, e)
            return None
        if not isinstance(data, dict):
            self._skip_malformed(payload, ValueError("payload is not a JSON object"))
            return None
        delta = DeltaPayload.from_json(data).text
        if not delta:
            return None
        self._parts.append(delta)
        return delta

    def reset(self) -> None:
        self._parts.clear()
        self.skipped = 0

    def _skip_malformed(self, payload: str, error: Exception) -> None:
        self.skipped += 1
        log_event(
            logger,
            logging.DEBUG,
            "Skipped malformed stream payload",
            {"component": "accumulator"},
            skipped=self.skipped,
            error=str(error),
            payload_preview=payload[:80],
        )
        if self._on_skip is not None:
            self._on_skip(payload, error)

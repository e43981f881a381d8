"""单写者、多读者的状态容器。

UI 层（或任何调用方）通过 subscribe 获取 {is_loading, result} 的每次更新，
与 AIStreamClient 同生命周期创建和丢弃，不依赖任何全局状态。
"""

import logging
from dataclasses import replace
from typing import Any, Callable, List

from planner_core.domain.models import StreamState
from planner_core.infrastructure.logging.logger import log_event, logger

Listener = Callable[[StreamState], None]


class StreamStore:
    def __init__(self, initial: StreamState | None = None):
        self._state = initial or StreamState()
        self._listeners: List[Listener] = []

    def get_state(self) -> StreamState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """注册监听器，返回取消订阅函数。"""

        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def set(self, **changes: Any) -> StreamState:
        """更新状态并同步通知监听器（按注册顺序）。"""

        self._state = replace(self._state, **changes)
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception as e:
                # 监听器异常不能中断正在进行的流
                log_event(
                    logger,
                    logging.WARNING,
                    "State listener failed",
                    {"component": "store"},
                    error=str(e),
                )
        return self._state

"""Planner Core 顶层包。

该包提供 AI 课程规划助手的流式生成核心，
包括配置加载、领域模型、流式解析（解码 / 切行 / 累加）、
可订阅的客户端状态以及转发上游模型的 Completion Gateway。
"""

from planner_core.client import AIStreamClient, StreamStore
from planner_core.domain.models import (
    GenerationFailure,
    GenerationSuccess,
    StreamState,
    TaskType,
)

__all__ = [
    "AIStreamClient",
    "GenerationFailure",
    "GenerationSuccess",
    "StreamState",
    "StreamStore",
    "TaskType",
]

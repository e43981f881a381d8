"""对外 API 服务模块。

提供简化的同步函数接口，供脚本或非 async 的上层应用调用。
"""

import asyncio
from typing import Any, Dict, Optional, Union

from planner_core.client.stream_client import AIStreamClient
from planner_core.config.settings import settings
from planner_core.domain.models import GenerationFailure, TaskType
from planner_core.prompts.context import lesson_plan_context


_client: Optional[AIStreamClient] = None


def get_default_client() -> AIStreamClient:
    """获取默认的 AIStreamClient 实例（单例）。"""
    global _client
    if _client is None:
        _client = AIStreamClient(settings)
    return _client


def run_generation(
    task_type: Union[TaskType, str],
    context: str,
    client: Optional[AIStreamClient] = None,
) -> Dict[str, Any]:
    """同步执行一次生成并返回结果字典。

    Args:
        task_type: 任务类型，例如 "lesson-plan"
        context: 发给模型的用户侧文本
        client: 指定客户端（可选，默认使用单例）

    Returns:
        成功: {"kind": "ok", "text": ..., "skipped_lines": n}
        失败: {"kind": "error", "message": ..., "skipped_lines": n}
    """
    client = client or get_default_client()
    outcome = asyncio.run(client.generate(task_type, context))
    if isinstance(outcome, GenerationFailure):
        return {"kind": outcome.kind, "message": outcome.message, "skipped_lines": client.last_skipped}
    return {"kind": outcome.kind, "text": outcome.text, "skipped_lines": client.last_skipped}


def generate_lesson_plan(client: Optional[AIStreamClient] = None, **fields: Any) -> Dict[str, Any]:
    """按表单字段（topic、age_group 等）生成课程计划。"""
    return run_generation(TaskType.LESSON_PLAN, lesson_plan_context(**fields), client=client)

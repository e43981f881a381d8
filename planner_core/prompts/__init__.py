"""系统提示词加载工具。

按 TaskType 从 prompts/<locale> 目录读取对应的 system prompt 文本，
Gateway 用它构造 messages[0]（role="system"）。
"""

from functools import lru_cache
from pathlib import Path
from typing import Union

from planner_core.domain.models import TaskType


PROMPTS_DIR = Path(__file__).resolve().parent

_PROMPT_FILES = {
    TaskType.LESSON_PLAN: "lesson_plan_system.md",
    TaskType.TEACHING_SUGGESTION: "teaching_suggestion_system.md",
    TaskType.RESOURCE_RECOMMENDATION: "resource_recommendation_system.md",
}


@lru_cache(maxsize=None)
def _read_prompt(task_type: TaskType, locale: str) -> str:
    fname = PROMPTS_DIR / locale / _PROMPT_FILES[task_type]
    return fname.read_text(encoding="utf-8").strip()


def load_system_prompt(task_type: Union[TaskType, str], locale: str = "en") -> str:
    """根据任务类型和语言加载系统提示词文本。

    未登记的 task_type 会抛出 UnknownTaskTypeError，而不是返回空 prompt。
    """

    return _read_prompt(TaskType.parse(task_type), locale)

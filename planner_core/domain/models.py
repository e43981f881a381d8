"""流式生成相关的数据模型。

本模块定义客户端与 Gateway 共享的标准数据结构：

- TaskType: Gateway 支持的任务类型（封闭集合）。
- StreamRequest: 一次生成请求（task type + 自由文本 context）。
- DeltaPayload: 单条 `data:` 行解析后的 chat-completion 增量。
- GenerationSuccess / GenerationFailure: 一次 generate 调用的结果（带 kind 标签）。
- StreamState: 对外可观察的 {is_loading, result} 投影。

所有模型都是进程内、单次调用级别的临时对象，不做持久化。
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union

from planner_core.domain.exceptions import UnknownTaskTypeError


class TaskType(str, Enum):
    """Gateway 按此选择 system prompt。"""

    LESSON_PLAN = "lesson-plan"
    TEACHING_SUGGESTION = "teaching-suggestion"
    RESOURCE_RECOMMENDATION = "resource-recommendation"

    @classmethod
    def parse(cls, value: Any) -> "TaskType":
        """把字符串解析为 TaskType，未登记的类型直接报错而不是退化为空 prompt。"""

        if isinstance(value, cls):
            return value
        for member in cls:
            if member.value == value:
                return member
        raise UnknownTaskTypeError(
            code="UNKNOWN_TASK_TYPE",
            message=f"Unknown task type: {value}",
            task_type=value,
        )


@dataclass(frozen=True)
class StreamRequest:
    """一次生成请求，提交后不可变。

    task_type 在客户端侧是开放的字符串（由服务端解释），
    因此这里同时接受 TaskType 与普通字符串。
    """

    task_type: Union[TaskType, str]
    context: str

    @property
    def type_value(self) -> str:
        if isinstance(self.task_type, TaskType):
            return self.task_type.value
        return str(self.task_type)

    def to_payload(self) -> Dict[str, str]:
        """构造出站请求体 {"type": ..., "context": ...}。"""

        return {"type": self.type_value, "context": self.context}


@dataclass
class DeltaChoice:
    """流式 chunk 中的单个 choice 增量。"""

    index: int
    content: str = ""
    role: Optional[str] = None
    finish_reason: Optional[str] = None


@dataclass
class DeltaPayload:
    """一条 `data:` 行的 JSON 解析结果，结构对齐 chat.completion.chunk。

    只有 choices[0].delta.content 会被累加；role-only 或只有
    finish_reason 的 chunk 视为“没有文本”，不是错误。
    """

    choices: List[DeltaChoice] = field(default_factory=list)
    raw: Optional[dict] = None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "DeltaPayload":
        choices: List[DeltaChoice] = []
        for i, ch in enumerate(data.get("choices") or []):
            if not isinstance(ch, dict):
                continue
            delta = ch.get("delta") or {}
            if not isinstance(delta, dict):
                delta = {}
            content = delta.get("content")
            choices.append(
                DeltaChoice(
                    index=ch.get("index", i),
                    content=content if isinstance(content, str) else "",
                    role=delta.get("role"),
                    finish_reason=ch.get("finish_reason"),
                )
            )
        return cls(choices=choices, raw=data)

    @property
    def text(self) -> str:
        if not self.choices:
            return ""
        return self.choices[0].content


@dataclass(frozen=True)
class GenerationSuccess:
    """生成成功，text 为完整累加文本。kind 是与 GenerationFailure 区分的固定标签。"""

    kind: Literal["ok"] = field(default="ok", init=False)
    text: str = ""


@dataclass(frozen=True)
class GenerationFailure:
    """生成失败。message 不含 "Error: " 前缀，展示文本见 display_text。"""

    kind: Literal["error"] = field(default="error", init=False)
    message: str = ""

    @property
    def display_text(self) -> str:
        return f"Error: {self.message}"


GenerationOutcome = Union[GenerationSuccess, GenerationFailure]


@dataclass(frozen=True)
class StreamState:
    """对外可观察的状态投影。

    - idle: is_loading=False, result=""。
    - loading: is_loading=True, result 逐步增长。
    - settled: is_loading=False, result 为最终文本或 "Error: ..."。
    - outcome: 最近一次已结束调用的结果；进行中或从未调用时为 None。
    """

    is_loading: bool = False
    result: str = ""
    outcome: Optional[GenerationOutcome] = None

    @property
    def is_error(self) -> bool:
        return isinstance(self.outcome, GenerationFailure)

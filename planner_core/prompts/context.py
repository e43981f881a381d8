"""各业务入口的 context 文本构造。

每个函数对应教师面板里一个发起生成请求的位置，返回随 type 一起发送的 context 字符串。
"""

from typing import Optional

from planner_core.domain.exceptions import ValidationError


def lesson_plan_context(
    topic: str,
    age_group: Optional[str] = None,
    learner_profile: Optional[str] = None,
    duration_minutes: int = 30,
    goals: Optional[str] = None,
) -> str:
    """lesson-plan 任务的 context；topic 为空时抛出 ValidationError。"""

    if not topic or not topic.strip():
        raise ValidationError(code="MISSING_TOPIC", message="Please enter a lesson topic")
    return (
        "Create an adaptive lesson plan:\n"
        f"- Topic: {topic.strip()}\n"
        f"- Age Group: {age_group or 'General'}\n"
        f"- Learner Profile: {learner_profile or 'Mixed neurodiverse classroom'}\n"
        f"- Duration: {duration_minutes} minutes\n"
        f"- Learning Goals: {goals or 'Not specified'}\n"
        "\n"
        "Include specific accommodations for the learner profiles mentioned. "
        "Add multisensory activities and differentiated instructions."
    )


def intervention_context(
    student_id: str,
    average_progress: int,
    completed: int,
    content_count: int,
    trend: str,
) -> str:
    """单个学生的 teaching-suggestion context，学生 ID 只保留前 8 位。"""

    return (
        f"A student (ID: {student_id[:8]}) has {average_progress}% average progress, "
        f"completed {completed}/{content_count} lessons. Their trend is {trend}. "
        "Suggest 3 specific intervention strategies for this neurodiverse learner."
    )


def class_tip_context(students: int, at_risk: int, average_progress: int, completion_rate: int) -> str:
    return (
        f"I have {students} students, {at_risk} are at risk (below 30% progress). "
        f"Average class progress is {average_progress}%. Completion rate is {completion_rate}%. "
        "Give me a quick, actionable tip for today's class to boost engagement for neurodiverse learners."
    )


def resource_recommendation_context(category: str) -> str:
    return (
        f"Give me 5 practical teaching strategies for {category} learners in an inclusive classroom. "
        "Focus on evidence-based approaches."
    )

"""Minimal demonstration of the streaming client."""

import asyncio

from planner_core import AIStreamClient, TaskType
from planner_core.prompts.context import lesson_plan_context


async def main() -> None:
    client = AIStreamClient()
    printed = 0

    def on_change(state) -> None:
        nonlocal printed
        if state.is_loading and len(state.result) > printed:
            print(state.result[printed:], end="", flush=True)
            printed = len(state.result)

    client.subscribe(on_change)
    context = lesson_plan_context("Telling time", age_group="7-9", learner_profile="ADHD", duration_minutes=40)
    outcome = await client.generate(TaskType.LESSON_PLAN, context)
    print()
    if outcome.kind == "error":
        print("Failed:", outcome.message)


if __name__ == "__main__":
    asyncio.run(main())

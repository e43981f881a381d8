"""Completion Gateway：FastAPI 应用与上游适配器。"""

from planner_core.gateway.app import create_app
from planner_core.gateway.upstream import UpstreamCompletionClient

__all__ = ["UpstreamCompletionClient", "create_app"]

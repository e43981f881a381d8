"""客户端：AIStreamClient 与可订阅的状态容器。"""

from planner_core.client.store import StreamStore
from planner_core.client.stream_client import AIStreamClient

__all__ = ["AIStreamClient", "StreamStore"]

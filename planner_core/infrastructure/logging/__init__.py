"""JSON 行格式的文件日志。"""

from planner_core.infrastructure.logging.logger import log_event, logger

__all__ = ["log_event", "logger"]

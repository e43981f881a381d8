"""配置层：Settings 定义与全局单例。"""

from planner_core.config.settings import Settings, settings

__all__ = ["Settings", "settings"]

"""配置管理模块。

支持从 .env、config.yaml 以及环境变量加载配置。
同一份 Settings 同时服务于前端侧的流式客户端（AIStreamClient）
和服务端的 Completion Gateway。
"""

import os
import warnings
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _load_config_from_yaml() -> Dict[str, Any]:
    """从 config.yaml 加载配置（若存在）。"""
    candidates = []
    explicit = os.getenv("PLANNER_CONFIG_FILE")
    if explicit:
        candidates.append(Path(explicit).expanduser())
    candidates.extend([
        Path.cwd() / "config.yaml",
        Path(__file__).resolve().parents[2] / "config.yaml",
    ])

    seen: set[Path] = set()
    for path in candidates:
        if not path or path in seen:
            continue
        seen.add(path)
        try:
            if path.exists():
                data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
                if isinstance(data, dict):
                    return data
                warnings.warn(f"Config file {path} is not a mapping, ignored")
        except (OSError, yaml.YAMLError) as exc:
            warnings.warn(f"Failed to read config file {path}: {exc}")
    return {}


class Settings(BaseSettings):
    """配置设置（使用 Pydantic）。"""

    # ---- 客户端：调用 Supabase Edge Function ----
    supabase_url: str = Field(
        default="http://localhost:54321",
        description="后端服务基础 URL（Supabase 项目地址或本地 gateway）",
    )
    ai_function_path: str = Field(
        default="/functions/v1/ai-lesson-planner",
        description="AI 流式生成端点路径",
    )
    supabase_publishable_key: Optional[str] = Field(
        default=None,
        description="前端可公开的 key，作为 Bearer 凭证发送",
    )
    http_timeout: float = Field(default=30.0, ge=1.0, description="建立连接的超时时间（秒）")
    stream_read_timeout: Optional[float] = Field(
        default=None,
        description="两次数据块之间的最长等待（秒），None 表示一直等待",
    )

    # ---- Gateway：转发到第三方 chat-completions ----
    gateway_api_key: Optional[str] = Field(default=None, description="上游 AI Gateway API 密钥")
    gateway_upstream_url: str = Field(
        default="https://ai.gateway.lovable.dev/v1/chat/completions",
        description="上游 chat-completions 端点",
    )
    gateway_model: str = Field(default="google/gemini-3-flash-preview", description="上游模型 ID")
    gateway_host: str = Field(default="127.0.0.1", description="Gateway 监听地址")
    gateway_port: int = Field(default=8787, ge=1, le=65535, description="Gateway 监听端口")

    # ---- 日志 ----
    log_dir: str = Field(default="logs", description="日志目录")
    log_level: str = Field(default="INFO", description="日志级别")
    log_redact_content: bool = Field(default=False, description="是否脱敏日志内容")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def ai_function_url(self) -> str:
        return f"{self.supabase_url.rstrip('/')}/{self.ai_function_path.lstrip('/')}"

    @staticmethod
    def _config_source() -> Dict[str, Any]:
        return _load_config_from_yaml()

    @field_validator("supabase_publishable_key", "gateway_api_key")
    @classmethod
    def validate_api_key(cls, v: Optional[str]) -> Optional[str]:
        if v and len(v) < 10:
            raise ValueError("API key seems too short")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            cls._config_source,
            file_secret_settings,
        )


settings = Settings()

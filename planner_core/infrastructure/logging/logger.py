import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

from planner_core.config.settings import settings


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        msg = record.getMessage()
        if settings.log_redact_content:
            msg = (msg or "")[:64]
        payload = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "name": record.name,
            "msg": msg,
        }
        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            payload.update(extra)
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logger() -> logging.Logger:
    logger = logging.getLogger("planner_core")
    logger.setLevel(settings.log_level)
    # 重复 import / reload 时不要叠加 handler
    if any(getattr(h, "_planner_json", False) for h in logger.handlers):
        return logger
    log_dir = Path(settings.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    fh = logging.FileHandler(log_dir / "planner.log", encoding="utf-8")
    fh.setLevel(settings.log_level)
    fh.setFormatter(JsonFormatter())
    fh._planner_json = True  # type: ignore[attr-defined]
    logger.addHandler(fh)
    return logger


def log_event(log: logging.Logger, level: int, message: str, ctx: Dict[str, Any], **fields: Any) -> None:
    """带结构化字段写日志，字段会被 JsonFormatter 合并进输出。"""

    payload = dict(ctx)
    payload.update(fields)
    log.log(level, message, extra={"extra": payload})


logger = setup_logger()

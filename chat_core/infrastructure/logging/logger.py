import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict


LOGGER_NAME = "chat_core"

logger = logging.getLogger(LOGGER_NAME)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "name": record.name,
            "msg": record.getMessage(),
        }
        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            payload.update(extra)
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logger(log_dir: str, debug: bool) -> logging.Logger:
    """配置 chat_core 日志。

    debug 关闭时只挂 NullHandler，所有日志被丢弃；
    开启时以 JSON Lines 写入 {log_dir}/docchat.log。
    """

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    if not debug:
        logger.addHandler(logging.NullHandler())
        logger.setLevel(logging.WARNING)
        return logger
    logger.setLevel(logging.DEBUG)
    path = Path(log_dir)
    path.mkdir(parents=True, exist_ok=True)
    fh = logging.FileHandler(path / "docchat.log", encoding="utf-8")
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(JsonFormatter())
    logger.addHandler(fh)
    return logger


def log_event(log: logging.Logger, level: int, message: str, **fields: Any) -> None:
    """带结构化字段写日志，字段会被 JsonFormatter 合并进输出。"""

    payload: Dict[str, Any] = dict(fields)
    log.log(level, message, extra={"extra": payload})

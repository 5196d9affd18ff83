"""Logging setup: one JSON line per record on stderr."""

import json
import logging
from typing import Union

# 요청마다 INFO를 쏟아내는 라이브러리 로거
NOISY_LOGGERS = ("uvicorn.access", "httpx")


class JsonFormatter(logging.Formatter):
    """Render records as single-line JSON (CloudWatch friendly)."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": self.formatTime(record, datefmt="%Y-%m-%d %H:%M:%S"),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        # 중국어 메시지를 그대로 남긴다
        return json.dumps(payload, ensure_ascii=False)


def init_logging(level: Union[int, str] = logging.INFO) -> None:
    """Replace root handlers with a single JSON stream handler."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root.addHandler(handler)
    root.setLevel(level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

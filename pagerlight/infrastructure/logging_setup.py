from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
import time as _time
from logging import Handler
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any
import socket

from pagerlight.config import Settings


_STANDARD_LOG_KEYS = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "exc_info",
    "exc_text",
    "stack_info",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "taskName",
}


_LOGGING_INITIALIZED = False


class JsonFormatter(logging.Formatter):
    def __init__(self, *, service: str = "pagerlight", utc: bool = True) -> None:
        super().__init__()
        self._service = service
        self._utc = utc

    def format(self, record: logging.LogRecord) -> str:
        if self._utc:
            _dt = datetime.fromtimestamp(record.created, tz=timezone.utc)
        else:
            _dt = datetime.fromtimestamp(record.created, tz=timezone.utc).astimezone()

        payload: dict[str, Any] = {
            "time": _dt.isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "filename": record.filename,
            "lineno": record.lineno,
            "func": record.funcName,
            "process": record.process,
            "thread": record.threadName,
        }
        payload["service"] = self._service
        payload["host"] = socket.gethostname()
        env_name = os.getenv("ENV") or os.getenv("ENVIRONMENT") or None
        if env_name:
            payload["environment"] = env_name
        # extras
        for k, v in record.__dict__.items():
            if k not in _STANDARD_LOG_KEYS and k not in payload:
                try:
                    json.dumps(v)  # ensure serializable
                    payload[k] = v
                except (TypeError, ValueError):
                    payload[k] = str(v)

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack_info"] = self.formatStack(record.stack_info)
        return json.dumps(payload, ensure_ascii=False)


def _apply_formatter_to_logger(logger_name: str, formatter: logging.Formatter) -> None:
    logger = logging.getLogger(logger_name)
    for h in logger.handlers:
        h.setFormatter(formatter)


def text_formatter(utc: bool = True) -> logging.Formatter:
    formatter = logging.Formatter(
        fmt="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    formatter.converter = _time.gmtime if utc else _time.localtime  # type: ignore[attr-defined]
    return formatter


def init_logging(settings: Settings) -> None:
    global _LOGGING_INITIALIZED
    if _LOGGING_INITIALIZED:
        return
    level_name = settings.log_level.upper()
    level = logging.DEBUG if level_name == "TRACE" else getattr(logging, level_name, logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)

    # Console: human-readable text; File: JSON (if enabled)
    console_formatter = text_formatter(settings.log_utc)
    json_formatter: logging.Formatter = JsonFormatter(service=settings.app_name, utc=settings.log_utc)

    # Stream handler (console), ensure exactly one
    stream_handlers = [
        h for h in root.handlers if isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
    ]
    if not stream_handlers:
        sh = logging.StreamHandler()
        sh.setLevel(level)
        sh.setFormatter(console_formatter)
        root.addHandler(sh)
    else:
        # Keep the first, standardize formatter, remove duplicates to avoid double logs
        primary = stream_handlers[0]
        primary.setFormatter(console_formatter)
        for h in stream_handlers[1:]:
            root.removeHandler(h)

    if settings.log_file_enabled:
        log_dir = Path(settings.log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        log_path = log_dir / settings.log_file_name

        def is_same_file_handler(handler: Handler) -> bool:
            return (
                getattr(handler, "baseFilename", None) == os.fspath(log_path.resolve())
                and isinstance(handler, RotatingFileHandler)
            )

        if not any(is_same_file_handler(h) for h in root.handlers):
            fh = RotatingFileHandler(
                filename=os.fspath(log_path),
                maxBytes=int(settings.log_max_bytes),
                backupCount=int(settings.log_backup_count),
                encoding="utf-8",
            )
            fh.setLevel(level)
            fh.setFormatter(json_formatter if settings.log_json else console_formatter)
            root.addHandler(fh)

    # Align uvicorn formatters with the console
    _apply_formatter_to_logger("uvicorn", console_formatter)
    _apply_formatter_to_logger("uvicorn.error", console_formatter)
    _apply_formatter_to_logger("uvicorn.access", console_formatter)

    # urllib3 logs every connection at debug; keep it quiet unless asked
    if level > logging.DEBUG:
        logging.getLogger("urllib3").setLevel(logging.WARNING)

    _LOGGING_INITIALIZED = True

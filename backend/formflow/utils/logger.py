"""Structured JSON logging; every line carries the request's correlation ID"""
import json
import logging
import os
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Optional

from ..config.settings import settings


correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

# Workflow attributes passed through ``extra=`` that end up as top-level JSON keys
EXTRA_FIELDS = (
    "entry_id", "template_id", "user_id", "role", "action", "status",
    "target_status", "folio_number", "reason_code", "error_code",
)

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5

# Third-party loggers kept quieter than the application
QUIET_LOGGERS = {
    "uvicorn": logging.INFO,
    "uvicorn.access": logging.WARNING,
    "pymongo": logging.WARNING,
}


class JsonFormatter(logging.Formatter):
    """One JSON object per record"""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "correlation_id": correlation_id_var.get(),
        }
        payload.update(
            (name, getattr(record, name))
            for name in EXTRA_FIELDS
            if getattr(record, name, None) is not None
        )
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps({k: v for k, v in payload.items() if v is not None}, default=str)


def _file_handler(path: str, level: int = logging.NOTSET) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        path, maxBytes=LOG_FILE_MAX_BYTES, backupCount=LOG_FILE_BACKUPS, encoding="utf-8"
    )
    handler.setLevel(level)
    return handler


def setup_logging(logs_path: Optional[str] = None, level: Optional[str] = None) -> None:
    """
    Route the root logger to stdout, ``app.log`` and ``error.log``

    Args:
        logs_path: Directory for the rotating files (default: settings.logs_path)
        level: Root level name (default: settings.log_level)
    """
    logs_path = logs_path or settings.logs_path
    os.makedirs(logs_path, exist_ok=True)

    handlers = [
        logging.StreamHandler(sys.stdout),
        _file_handler(os.path.join(logs_path, "app.log")),
        _file_handler(os.path.join(logs_path, "error.log"), logging.ERROR),
    ]
    formatter = JsonFormatter()

    root = logging.getLogger()
    root.setLevel((level or settings.log_level).upper())
    root.handlers.clear()
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)

    for name, quiet_level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(quiet_level)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def set_correlation_id(correlation_id: str) -> None:
    correlation_id_var.set(correlation_id)


def get_correlation_id() -> Optional[str]:
    return correlation_id_var.get()

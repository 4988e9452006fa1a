"""
Diagnostics side channel for allocation events.

Target log files are never written through here. This module only sets up
the logger that records how those files were found or created.
"""
from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
import os
from typing import Optional

from .events import AllocationEvent

ENV_DIAG_PATH = "APPENDLOG_DIAG_PATH"
DEFAULT_DIAG_NAME = "appendlog-diagnostics.log"
DIAG_MAX_BYTES = 5 * 1024 * 1024
DIAG_BACKUP_COUNT = 5
RECORD_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
RECORD_DATEFMT = "%Y-%m-%d %H:%M:%S"

_EVENT_LEVELS = {
    "collision": logging.INFO,
    "created": logging.INFO,
    "failed": logging.WARNING,
}


def event_level(event: AllocationEvent) -> int:
    return _EVENT_LEVELS.get(event.kind, logging.INFO)


def format_event(event: AllocationEvent) -> str:
    parts = [
        f"Event type: {event.kind}",
        f"Path: {event.path}",
        f"Attempt: {event.attempt}",
    ]
    if event.detail is not None:
        parts.append(f"Detail: {event.detail}")
    return " | ".join(parts)


def resolve_log_path(log_path: Optional[str] = None) -> str:
    resolved = log_path or os.environ.get(ENV_DIAG_PATH) or DEFAULT_DIAG_NAME
    return os.path.abspath(os.fspath(resolved))


def _handler_for(logger: logging.Logger, path: str) -> Optional[RotatingFileHandler]:
    for handler in logger.handlers:
        if isinstance(handler, RotatingFileHandler) and os.path.normcase(
            handler.baseFilename
        ) == os.path.normcase(path):
            return handler
    return None


def get_logger(
    name: str,
    log_path: Optional[str] = None,
    level: Optional[int] = None,
    max_bytes: int = DIAG_MAX_BYTES,
    backup_count: int = DIAG_BACKUP_COUNT,
) -> logging.Logger:
    """
    Logger writing to a rotating diagnostics file.

    `level` is applied only when given; a logger without a level of its own
    starts at INFO. Calling again for the same file reuses its handler. The
    file is opened on the first record, not here.
    """
    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(level)
    elif logger.level == logging.NOTSET:
        logger.setLevel(logging.INFO)

    resolved_path = resolve_log_path(log_path)
    if _handler_for(logger, resolved_path) is None:
        os.makedirs(os.path.dirname(resolved_path), exist_ok=True)
        handler = RotatingFileHandler(
            resolved_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
            delay=True,
        )
        handler.setFormatter(logging.Formatter(fmt=RECORD_FORMAT, datefmt=RECORD_DATEFMT))
        logger.addHandler(handler)
    return logger


def record_event(logger: logging.Logger, event: AllocationEvent) -> None:
    logger.log(event_level(event), format_event(event))

"""Process-wide logging setup.

Usage:
    from alice_skill.logging_config import setup_logging

    setup_logging("debug")   # once, at process startup

Modules keep using ``logging.getLogger(__name__)``; the middlewares and the
SQL store also accept an explicit logger.
"""

from __future__ import annotations

import logging
import sys

_HANDLER_NAME = "_alice_skill_stream"


class SkillFormatter(logging.Formatter):
    """Produces lines like:

    2026-10-16 14:30:00 [INFO] alice_skill.access:61 - POST / 200 12.41ms 58B
    """

    def format(self, record: logging.LogRecord) -> str:
        timestamp = self.formatTime(record, self.datefmt)
        formatted = f"{timestamp} [{record.levelname}] {record.name}:{record.lineno} - {record.getMessage()}"
        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)
        if record.exc_text:
            formatted += "\n" + record.exc_text
        if record.stack_info:
            formatted += "\n" + record.stack_info
        return formatted


def resolve_level(level: str) -> int:
    value = logging.getLevelName(level.upper())
    if not isinstance(value, int):
        raise ValueError(f"unknown log level: {level!r}")
    return value


def setup_logging(level: str = "info") -> None:
    """Configure the root logger with a stderr handler.

    Safe to call multiple times (idempotent via handler name check).
    """
    root = logging.getLogger()
    if any(getattr(h, "name", None) == _HANDLER_NAME for h in root.handlers):
        return

    root.setLevel(resolve_level(level))

    handler = logging.StreamHandler(sys.stderr)
    handler.name = _HANDLER_NAME
    handler.setFormatter(SkillFormatter(datefmt="%Y-%m-%d %H:%M:%S"))
    root.addHandler(handler)

    # Route uvicorn through root so every line shares one format
    for name in ("uvicorn", "uvicorn.access", "uvicorn.error"):
        uv_logger = logging.getLogger(name)
        uv_logger.handlers.clear()
        uv_logger.propagate = True
    # Our own access log replaces uvicorn's
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

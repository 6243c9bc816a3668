"""
Tool: Logging
Purpose: structlog setup for the helm library and command line

Library modules only call get_logger(__name__); nothing is emitted in a
particular shape until setup_logging() runs, which the CLI does once per
command. Records always go to stderr (or a given stream) so stdout carries
nothing but the command's JSON result.

Environment:
    HELM_LOG_LEVEL   DEBUG, INFO (default), WARNING, ERROR
    HELM_LOG_FORMAT  "json" for one JSON object per line, console otherwise

Usage:
    from helm.logging_config import bind_user, get_logger, setup_logging

    setup_logging()
    bind_user("alice")
    get_logger(__name__).info("task_created", task_id=task_id)
"""

from __future__ import annotations

import logging
import os
import sys
from typing import TextIO

import structlog


def _resolve_level(level: str | None) -> int:
    name = (level or os.environ.get("HELM_LOG_LEVEL") or "INFO").upper()
    value = getattr(logging, name, None)
    # Unknown names fall back to INFO rather than failing the command
    return value if isinstance(value, int) else logging.INFO


def setup_logging(
    level: str | None = None,
    json_output: bool | None = None,
    stream: TextIO | None = None,
) -> None:
    """
    Route helm's structlog events through one stdlib handler.

    Args:
        level: Level name; HELM_LOG_LEVEL when omitted
        json_output: JSON lines instead of console text; HELM_LOG_FORMAT when omitted
        stream: Where records are written (stderr by default)
    """
    if json_output is None:
        json_output = os.environ.get("HELM_LOG_FORMAT", "").lower() == "json"

    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(_resolve_level(level))


def bind_user(user_id: str | None) -> None:
    """Attach user_id to every event logged for the rest of this command."""
    structlog.contextvars.clear_contextvars()
    if user_id:
        structlog.contextvars.bind_contextvars(user_id=user_id)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


__all__ = ["bind_user", "get_logger", "setup_logging"]

"""Structured logging configuration using structlog.

JSON lines in production, colorized console output everywhere else.
Logs go to stderr so stdout stays free for command output.

Every analysis run binds an ``analysis_id`` into the structlog context,
so the per-repository events of concurrent runs can be told apart.
Credential-like keys are redacted and long string values (README
previews, error bodies) are truncated before rendering.
"""

from __future__ import annotations

import logging
import sys
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog

from app.config import Environment, Settings, get_settings

MAX_LOG_VALUE_LENGTH = 200

SENSITIVE_KEYS = frozenset(
    {
        "api_key",
        "password",
        "secret",
        "token",
        "authorization",
        "cookie",
    }
)


def _filter_sensitive_data(
    _logger: Any, _method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Redact values whose key looks like a credential."""
    for key in list(event_dict.keys()):
        if any(s in key.lower() for s in SENSITIVE_KEYS):
            event_dict[key] = "[REDACTED]"
    return event_dict


def _truncate_long_values(
    _logger: Any, _method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    for key, value in event_dict.items():
        if key != "event" and isinstance(value, str) and len(value) > MAX_LOG_VALUE_LENGTH:
            event_dict[key] = value[:MAX_LOG_VALUE_LENGTH] + "..."
    return event_dict


def setup_logging(settings: Settings | None = None) -> None:
    """Configure structlog and the root stdlib logger."""
    settings = settings or get_settings()

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        _filter_sensitive_data,
        _truncate_long_values,
    ]

    if settings.environment == Environment.PRODUCTION:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, settings.log_level.upper()))

    # Per-request lines from the HTTP client are noise next to our own events
    for logger_name in ("httpx", "httpcore"):
        logging.getLogger(logger_name).setLevel(logging.WARNING)


@contextmanager
def analysis_context(**values: Any) -> Iterator[str]:
    """Bind a fresh ``analysis_id`` (plus ``values``) for the enclosed block."""
    analysis_id = uuid.uuid4().hex[:12]
    with structlog.contextvars.bound_contextvars(analysis_id=analysis_id, **values):
        yield analysis_id


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)

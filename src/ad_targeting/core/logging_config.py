"""Structured logging configuration using structlog.

Call ``configure_logging()`` once at application startup (the FastAPI
factory in ``api/main.py`` does this).  Modules then log through structlog
with snake_case event names and keyword context::

    import structlog
    logger = structlog.get_logger(__name__)
    logger.info("advertisement_created", advertisement_id=42, conditions=2)

Records emitted through the stdlib ``logging`` API (SQLAlchemy, uvicorn)
are routed through the same processor chain so every line has the same
shape.

A ``request_id`` context variable is populated by the request-logging
middleware and merged into every record emitted during that request.
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar
from enum import Enum

import structlog
from structlog.types import EventDict, WrappedLogger

request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)
"""Per-request ID propagated from the HTTP middleware to log processors."""


_SECRET_SUBSTRINGS: frozenset[str] = frozenset({
    "password",
    "secret",
    "token",
    "authorization",
    "database_url",
    "dsn",
})
"""Lower-cased substrings that identify event-dict keys whose values must be
redacted before the record reaches any renderer.  Database URLs carry
credentials, so they are redacted too."""

_REDACTED = "[REDACTED]"


def _redact_secrets(
    logger: WrappedLogger,  # noqa: ARG001
    method_name: str,  # noqa: ARG001
    event_dict: EventDict,
) -> EventDict:
    """Replace values of secret-bearing keys with a redaction marker.

    Scans top-level keys and one level of nested ``dict`` values.
    """
    for key in list(event_dict.keys()):
        if any(secret in key.lower() for secret in _SECRET_SUBSTRINGS):
            event_dict[key] = _REDACTED
            continue
        value = event_dict[key]
        if isinstance(value, dict):
            for nested_key in list(value.keys()):
                if any(secret in str(nested_key).lower() for secret in _SECRET_SUBSTRINGS):
                    value[nested_key] = _REDACTED
    return event_dict


def _render_enums(
    logger: WrappedLogger,  # noqa: ARG001
    method_name: str,  # noqa: ARG001
    event_dict: EventDict,
) -> EventDict:
    """Log enum members (write stages, platforms) by their value."""
    for key, value in event_dict.items():
        if isinstance(value, Enum):
            event_dict[key] = value.value
    return event_dict


def _inject_request_id(
    logger: WrappedLogger,  # noqa: ARG001
    method_name: str,  # noqa: ARG001
    event_dict: EventDict,
) -> EventDict:
    """Add the current request ID when one is set and not already bound.

    Fallback for code paths that set the ``ContextVar`` directly rather
    than through ``structlog.contextvars.bind_contextvars``.
    """
    rid = request_id_var.get()
    if rid is not None and "request_id" not in event_dict:
        event_dict["request_id"] = rid
    return event_dict


def configure_logging(log_level: str = "INFO") -> None:
    """Configure structlog and stdlib logging.

    Outputs newline-delimited JSON unless *log_level* is ``"DEBUG"``, in
    which case structlog's coloured ``ConsoleRenderer`` is used.  Every
    record carries ``timestamp``, ``level``, ``logger`` and ``event``, plus
    ``request_id`` inside a request.

    Safe to call more than once; the root handler is replaced, not added.

    Args:
        log_level: ``"DEBUG"``, ``"INFO"``, ``"WARNING"``, ``"ERROR"`` or
            ``"CRITICAL"``.  Case-insensitive.
    """
    level_upper = log_level.upper()
    numeric_level = getattr(logging, level_upper, logging.INFO)
    is_development = level_upper == "DEBUG"

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        _inject_request_id,
        _redact_secrets,
        _render_enums,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if is_development:
        final_renderer: structlog.types.Processor = structlog.dev.ConsoleRenderer(colors=True)
    else:
        final_renderer = structlog.processors.JSONRenderer()

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            final_renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(numeric_level)

    if not is_development:
        for noisy_logger in ("uvicorn.access", "sqlalchemy.engine", "aiosqlite", "asyncio"):
            logging.getLogger(noisy_logger).setLevel(logging.WARNING)

    structlog.configure(
        processors=shared_processors
        + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

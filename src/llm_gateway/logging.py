"""Structured logging configuration using structlog."""

from __future__ import annotations

import logging
import re
import sys
from typing import Any

import structlog

REDACTED = "***"

# Event fields whose values are credentials
_SECRET_FIELDS = re.compile(r"(api_key|authorization|token|secret|x-api-key)$", re.IGNORECASE)

# Gemini passes its key as a query parameter
_KEY_PARAM = re.compile(r"([?&]key=)[^&\s]+")

# Libraries that log full request URLs at INFO
_NOISY_LOGGERS = ("httpx", "httpcore")


def _stderr_logger(*args: Any) -> structlog.PrintLogger:
    # Looked up per call: test runners and CliRunner swap sys.stderr
    return structlog.PrintLogger(file=sys.stderr)


def redact_secrets(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Mask credential fields and ``key=`` query parameters in log events."""
    for field, value in event_dict.items():
        if _SECRET_FIELDS.search(field) and value is not None:
            event_dict[field] = REDACTED
        elif isinstance(value, str) and "key=" in value:
            event_dict[field] = _KEY_PARAM.sub(rf"\g<1>{REDACTED}", value)
    return event_dict


def configure_logging(json_output: bool = True, log_level: str = "INFO") -> None:
    """Configure structlog for structured logging.

    Logs go to stderr so command output on stdout stays machine-readable.

    Args:
        json_output: If True, output JSON logs. If False, output human-readable logs.
        log_level: The logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """
    level = getattr(logging, log_level.upper())

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        redact_secrets,
    ]

    if json_output:
        processors = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ]
    else:
        processors = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=_stderr_logger,
        cache_logger_on_first_use=False,
    )

    logging.basicConfig(
        format="%(message)s",
        level=level,
        handlers=[logging.StreamHandler(sys.stderr)],
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger.

    Args:
        name: Optional logger name, usually ``__name__``.

    Returns:
        A bound structlog logger.
    """
    return structlog.get_logger(name)


def bind_request_context(**kwargs: Any) -> None:
    """Bind fields (conversation id, provider, ...) to every log line of the current task."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_request_context() -> None:
    """Drop fields bound with bind_request_context."""
    structlog.contextvars.clear_contextvars()

"""Structured logging utilities using structlog for lifecycle context and tracing."""

import os
import sys
import uuid
from typing import Any, Optional
import structlog
from structlog.processors import JSONRenderer
from structlog.contextvars import merge_contextvars

IS_TTY = sys.stderr.isatty()
LOG_FORMAT = os.getenv("LOG_FORMAT", "console").lower()
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def configure_structured_logging() -> None:
    """
    Configure structured logging with appropriate processors and renderers.

    Uses:
    - Console renderer for development (colorized, human-readable)
    - JSON renderer for production (structured, machine-readable)
    - Context binding for request_id, account_id and correlation_id
    """
    processors = [
        merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if IS_TTY and LOG_FORMAT == "console":
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=True,
                exception_formatter=structlog.dev.plain_traceback,
            )
        )
    else:
        processors.append(JSONRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(LOG_LEVEL),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def get_structured_logger(
    name: str,
    **additional_context: Any,
) -> structlog.BoundLogger:
    """
    Get a structured logger with bound context.

    Args:
        name: Logger name (typically the component name)
        **additional_context: Additional context to bind

    Returns:
        Configured BoundLogger instance with context

    Example:
        >>> logger = get_structured_logger("lifecycle.service")
        >>> logger.info("request_submitted", request_id="REQ-2024-000001")
    """
    logger = structlog.get_logger(name).bind(component=name)

    if additional_context:
        logger = logger.bind(**additional_context)

    return logger


def get_correlation_id() -> str:
    """Generate a correlation ID for tracing one inbound call across components."""
    return str(uuid.uuid4())


def bind_lifecycle_context(
    logger: structlog.BoundLogger,
    request_id: Optional[str] = None,
    account_id: Optional[str] = None,
    correlation_id: Optional[str] = None,
) -> structlog.BoundLogger:
    """
    Bind request/account context to an existing logger.

    Only the identifiers that are provided are bound, so the same helper
    serves account-scoped calls (grants) and request-scoped calls (officer
    actions).

    Args:
        logger: Existing logger instance
        request_id: Verification request being operated on
        account_id: Account being charged or notified
        correlation_id: Optional correlation ID for tracing

    Returns:
        Logger with bound lifecycle context
    """
    context: dict[str, str] = {}
    if request_id:
        context["request_id"] = request_id
    if account_id:
        context["account_id"] = account_id
    if correlation_id:
        context["correlation_id"] = correlation_id
    return logger.bind(**context) if context else logger


configure_structured_logging()


__all__ = [
    "get_structured_logger",
    "get_correlation_id",
    "bind_lifecycle_context",
    "configure_structured_logging",
]

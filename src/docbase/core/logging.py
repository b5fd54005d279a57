"""Structured logging with correlation IDs.

This module configures structlog for structured JSON logging with
correlation ID tracking, so that every log line emitted while a host
operation runs (a save, a schema edit) can be traced back to it.
"""

import contextvars
import logging
import sys
import uuid
from collections.abc import Mapping
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from docbase.core.config import get_settings


def add_correlation_id(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Add correlation ID to log entry if present in context.

    Args:
        logger: Logger instance (unused).
        method_name: Method name (unused).
        event_dict: Event dictionary to modify.

    Returns:
        EventDict: Modified event dictionary with correlation_id.
    """
    # Bound by the host around one operation; generate a throwaway id otherwise
    if "correlation_id" not in event_dict:
        event_dict["correlation_id"] = f"cid_{uuid.uuid4().hex[:12]}"
    return event_dict


def add_logger_name(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Add logger name to log entry.

    Args:
        logger: Logger instance.
        method_name: Method name (unused).
        event_dict: Event dictionary to modify.

    Returns:
        EventDict: Modified event dictionary with logger name.
    """
    event_dict["logger"] = logger.name if hasattr(logger, "name") else "docbase"
    return event_dict


def rename_message_field(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Rename 'event' field to 'message' for compatibility.

    Args:
        logger: Logger instance (unused).
        method_name: Method name (unused).
        event_dict: Event dictionary to modify.

    Returns:
        EventDict: Modified event dictionary with message field.
    """
    if "event" in event_dict:
        event_dict["message"] = event_dict.pop("event")
    return event_dict


def configure_logging(settings: Any | None = None) -> None:
    """Configure structured logging for the engine.

    Sets up structlog with JSON formatting for production and
    console formatting for development.

    Args:
        settings: Optional settings instance. If not provided, will load from environment.
    """
    if settings is None:
        settings = get_settings()

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        # structlog.stdlib.add_logger_name doesn't work with PrintLogger
        add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        add_correlation_id,
        rename_message_field,
    ]

    if settings.is_development or settings.log_format == "console":
        structlog.configure(
            processors=shared_processors
            + [
                structlog.dev.ConsoleRenderer(
                    colors=True,
                    exception_formatter=structlog.dev.plain_traceback,
                ),
            ],
            wrapper_class=structlog.make_filtering_bound_logger(
                getattr(logging, settings.log_level)
            ),
            context_class=dict,
            logger_factory=structlog.PrintLoggerFactory(),
            cache_logger_on_first_use=False,
        )
    else:
        structlog.configure(
            processors=shared_processors
            + [
                structlog.processors.JSONRenderer(),
            ],
            wrapper_class=structlog.make_filtering_bound_logger(
                getattr(logging, settings.log_level)
            ),
            context_class=dict,
            logger_factory=structlog.PrintLoggerFactory(),
            cache_logger_on_first_use=True,
        )

    # Standard logging for anything the host routes through the stdlib
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level),
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance.

    Args:
        name: Optional logger name. If not provided, uses 'docbase'.

    Returns:
        BoundLogger: Configured structured logger instance.
    """
    return structlog.get_logger(name or "docbase")


class LoggingContext:
    """Context manager for adding logging context.

    Binds key-value pairs to every log entry emitted within the scope,
    for example the id of the collection being saved.

    Example:
        with LoggingContext(collection_id="tasks"):
            logger.info("Syncing backlinks")  # Will include collection_id
    """

    def __init__(self, **kwargs: str) -> None:
        """Initialize logging context with key-value pairs.

        Args:
            **kwargs: Key-value pairs to add to logging context.
        """
        self.context = kwargs
        self.tokens: Mapping[str, contextvars.Token[Any]] | None = None

    def __enter__(self) -> "LoggingContext":
        """Enter the context and add context variables."""
        self.tokens = structlog.contextvars.bind_contextvars(**self.context)
        return self

    def __exit__(self, *args: Any) -> None:
        """Exit the context, restoring whatever the keys held before."""
        if self.tokens is not None:
            structlog.contextvars.reset_contextvars(**self.tokens)
            self.tokens = None


def bind_correlation_id(correlation_id: str) -> None:
    """Bind a correlation ID to the current logging context.

    Args:
        correlation_id: The correlation ID to bind to the context.
    """
    structlog.contextvars.bind_contextvars(correlation_id=correlation_id)


def clear_context() -> None:
    """Clear all context variables from the current logging context."""
    structlog.contextvars.clear_contextvars()

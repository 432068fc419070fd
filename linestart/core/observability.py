"""
Observability Infrastructure

Structured logging with correlation tracking for services and change-feed
consumers.
"""

import contextlib
import contextvars
import logging
import sys
import uuid
from collections.abc import Iterator
from typing import Any

import structlog

from .config import Settings, get_settings

correlation_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "correlation_id", default=""
)
actor_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "actor_id", default=""
)


class CorrelationIdProcessor:
    """Structlog processor to add correlation ID to all log entries."""

    def __call__(
        self, logger: Any, name: str, event_dict: dict[str, Any]
    ) -> dict[str, Any]:
        correlation_id = correlation_id_var.get("")
        actor_id = actor_id_var.get("")

        if correlation_id:
            event_dict["correlation_id"] = correlation_id
        if actor_id:
            event_dict["actor_id"] = actor_id

        return event_dict


def setup_structured_logging(settings: Settings | None = None) -> None:
    """Configure structlog and the standard library logging it sits on."""
    settings = settings or get_settings()
    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        CorrelationIdProcessor(),
        structlog.processors.TimeStamper(fmt="ISO"),
        structlog.processors.add_log_level,
        structlog.stdlib.add_logger_name,
    ]

    if settings.LOG_FORMAT == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(colors=settings.ENVIRONMENT == "local")
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.SQL_ECHO else logging.WARNING
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Set correlation ID for request tracking."""
    if correlation_id is None:
        correlation_id = str(uuid.uuid4())

    correlation_id_var.set(correlation_id)
    return correlation_id


@contextlib.contextmanager
def bound_actor(actor_id: str) -> Iterator[None]:
    """Bind the acting user id to every log line emitted inside the block."""
    token = actor_id_var.set(actor_id)
    try:
        yield
    finally:
        actor_id_var.reset(token)

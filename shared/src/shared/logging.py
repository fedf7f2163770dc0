"""Structured logging with message_id/queue correlation."""
import logging
import sys
from contextvars import ContextVar
from typing import Any

import structlog

message_id_var: ContextVar[str] = ContextVar("message_id", default="")
queue_var: ContextVar[str] = ContextVar("queue", default="")


def set_message_context(message_id: str, queue: str) -> None:
    message_id_var.set(message_id)
    queue_var.set(queue)


def clear_message_context() -> None:
    message_id_var.set("")
    queue_var.set("")


def add_message_context(
    logger: Any,
    method: str,
    event: dict[str, Any],
) -> dict[str, Any]:
    """Processor to inject the message being handled into log events."""
    mid = message_id_var.get()
    queue = queue_var.get()
    if mid:
        event.setdefault("message_id", mid)
    if queue:
        event.setdefault("queue", queue)
    return event


def configure_logging(json_logs: bool = True, level: str = "INFO", service: str | None = None) -> None:
    """Configure structlog for JSON output and message correlation."""
    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        add_message_context,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if json_logs:
        shared_processors.append(structlog.processors.JSONRenderer())
    else:
        shared_processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=shared_processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )
    if service:
        structlog.contextvars.bind_contextvars(service=service)

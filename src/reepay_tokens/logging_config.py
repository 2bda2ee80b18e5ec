"""Structured logging configuration using structlog."""

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor

# Event keys that may carry card display data from Reepay payloads
_CARD_KEYS = ("masked_card", "card_info", "source")


def redact_card_fields(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Keep only the last four digits of masked card values in log events."""
    for key in _CARD_KEYS:
        value = event_dict.get(key)
        if isinstance(value, str) and value:
            event_dict[key] = f"****{value[-4:]}"
        elif isinstance(value, dict):
            event_dict[key] = {"id": value.get("id")}
    return event_dict


def configure_logging(
    log_level: str = "INFO",
    format_as_json: bool = True,
) -> None:
    """
    Configure structured logging for the token engine.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_as_json: If True, output logs as JSON; otherwise use console format
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        redact_card_fields,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if format_as_json:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def bind_request_context(**context: Any) -> None:
    """Attach caller context (order_id, correlation_id, ...) to every log event.

    Checkout, webhook and renewal callers bind their identifiers once per
    request; the engine's own events then carry them without threading them
    through every call.
    """
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(**context)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)

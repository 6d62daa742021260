"""Structured logging configuration for hookrelay.

JSON output for production, coloured console output for development.
Every record emitted while a dispatch runs carries that run's ``event_id``.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from structlog.typing import Processor

# Outbound HTTP libraries log one INFO line per request.
NOISY_LOGGERS = ("httpx", "httpcore", "hpack")

_configured = False


def _processors(format: str) -> list[Processor]:
    shared: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if format.lower() == "json":
        return [*shared, structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    return [*shared, structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())]


def configure_logging(
    level: str = "INFO",
    format: str = "json",
) -> None:
    """Configure structured logging for the relay.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL). Unknown
            names fall back to INFO. Below DEBUG the per-request logs of
            the HTTP client are silenced.
        format: "json" for production, "text" for development.

    Example:
        ```python
        from hookrelay.logging import configure_logging, get_logger

        configure_logging(level="DEBUG", format="text")
        get_logger(__name__).info("Relay started", batch_size=10)
        ```
    """
    global _configured

    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level)

    client_level = logging.DEBUG if log_level <= logging.DEBUG else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(client_level)

    structlog.configure(
        processors=_processors(format),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _configured = True


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger, configuring defaults on first use."""
    if not _configured:
        configure_logging()
    return structlog.get_logger(name)  # type: ignore[no-any-return]


@contextmanager
def event_context(event_id: str) -> Iterator[None]:
    """Tag every log record inside the block with a trigger event ID.

    Values bound before entering are restored on exit, so nested or
    concurrent runs in separate tasks do not clobber each other.

    Example:
        ```python
        with event_context("evt_3f2a9c1b7d4e"):
            logger.warning("Webhook delivery attempt failed", attempt=2)
        ```
    """
    with structlog.contextvars.bound_contextvars(event_id=event_id):
        yield


def bind_context(**kwargs: object) -> None:
    """Bind values to every subsequent log record in this context.

    Args:
        **kwargs: Key-value pairs, e.g. ``target_id`` or ``request_id``.
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    """Remove the named keys from the logging context."""
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()

"""Logging configuration using structlog.

Every event carries ``service`` and the configured ``chain``. A report run
additionally binds the wallet and the chain it was requested for, see
``report_context``.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager

import structlog
from structlog.typing import EventDict, Processor, WrappedLogger

from lptrack.config.settings import get_settings

SERVICE_NAME = "lptrack"

# Libraries whose INFO output is one line per HTTP request
NOISY_LOGGERS = ("httpx", "httpcore")


def add_service_context(chain: str) -> Processor:
    """Build a processor that stamps ``service`` and a default ``chain``.

    A ``chain`` bound on the event or in context vars wins over the default.
    """

    def processor(_: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("service", SERVICE_NAME)
        event_dict.setdefault("chain", chain)
        return event_dict

    return processor


def build_processors(chain: str, debug: bool) -> list[Processor]:
    """Processor chain: console rendering in debug, JSON otherwise."""
    renderer: Processor = (
        structlog.dev.ConsoleRenderer() if debug else structlog.processors.JSONRenderer()
    )
    return [
        structlog.contextvars.merge_contextvars,
        add_service_context(chain),
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
        renderer,
    ]


def configure_logging() -> None:
    """Configure structlog for the application."""
    settings = get_settings()

    log_level = getattr(logging, settings.log_level)

    structlog.configure(
        processors=build_processors(settings.chain, settings.debug),
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Standard logging for third-party libraries (uvicorn, httpx)
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )
    if not settings.debug:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(max(log_level, logging.WARNING))


@contextmanager
def report_context(owner: str, chain: str) -> Iterator[None]:
    """Bind ``owner`` and ``chain`` to every event logged inside the block."""
    with structlog.contextvars.bound_contextvars(owner=owner.lower(), chain=chain):
        yield


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a configured logger instance."""
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger

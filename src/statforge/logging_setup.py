"""structlog configuration for statforge."""

import logging

import structlog

from statforge.config import get_settings


def configure_logging(level: str | None = None, fmt: str | None = None) -> None:
    """
    Configure structlog processors and output format.

    Args:
        level: Log level name. Defaults to the configured ``log_level``.
        fmt: ``"console"`` or ``"json"``. Defaults to the configured ``log_format``.
    """
    settings = get_settings()
    level_name = (level or settings.log_level).upper()
    output = (fmt or settings.log_format).lower()

    renderer: structlog.types.Processor
    if output == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level_name, logging.INFO)
        ),
        cache_logger_on_first_use=False,
    )

"""Structured logging setup.

Configures structlog on top of the standard library logger so that uvicorn,
SQLAlchemy and application events share one output stream.
"""

import logging
import sys

import structlog

from backend.erp.core.settings import get_settings


def configure_logging(log_level: str | None = None, json_logs: bool | None = None) -> None:
    """
    Configure structured logging for the application.

    Args:
        log_level: Logging level name; defaults to ``settings.log_level``.
        json_logs: Render JSON lines (production) instead of console output.
    """
    settings = get_settings()
    level_name = (log_level or settings.log_level).upper()
    use_json = settings.json_logs if json_logs is None else json_logs

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level_name, logging.INFO),
    )

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]
    if use_json:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

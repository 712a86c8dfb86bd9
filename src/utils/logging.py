"""Shared logging utilities for structured logging across the application.

This module provides a centralized logging configuration using structlog.
Production deployments get one JSON object per line; local development gets
the colored console renderer.
"""

import logging
import os
import sys

import structlog

_configured = False


def configure_logging(level: str | None = None, json_logs: bool | None = None) -> None:
    """Configure structlog and the standard library root logger.

    Args:
        level: Log level name. Defaults to LOG_LEVEL or INFO.
        json_logs: Force JSON output on or off. Defaults to JSON in production.
    """
    global _configured

    level_name = (level or os.getenv("LOG_LEVEL") or "INFO").upper()
    if json_logs is None:
        json_logs = os.getenv("ENVIRONMENT") == "production"

    renderer = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level_name, logging.INFO),
    )
    _configured = True


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a configured structured logger instance.

    Args:
        name: Logger name (typically __name__ from the calling module).

    Returns:
        Configured structlog logger instance ready for use.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("collection_created", collection="yt_abc_123", chunks=12)
    """
    if not _configured:
        configure_logging()

    return structlog.get_logger(name)

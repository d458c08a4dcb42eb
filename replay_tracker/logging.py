"""
Centralized structlog configuration for the replay tracker service.

Provides JSON-formatted logs with environment context. Nothing is configured
at import time: process entry points call ``configure_logging`` once and
hand the loggers returned by ``get_logger`` to the components they build.
"""

from __future__ import annotations

import logging

import structlog
from structlog.typing import FilteringBoundLogger

from .config import Settings

SERVICE_NAME = "replay-tracker"


def _normalize_log_level(level: str | None, environment: str) -> int:
    env = environment.lower()
    if level:
        normalized = level.strip().upper()
    else:
        normalized = "INFO" if env == "production" else "DEBUG"
    return logging._nameToLevel.get(normalized, logging.INFO)


def configure_logging(settings: Settings) -> None:
    """
    Configure structlog with JSON output.

    All logs are output as JSON to stdout for easy aggregation.
    """
    resolved_level = _normalize_log_level(settings.log_level, settings.environment)
    logging.basicConfig(level=resolved_level)
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),  # ISO 8601 timestamps
            structlog.processors.add_log_level,
            structlog.processors.EventRenamer("message"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,  # Exception formatting
            structlog.processors.JSONRenderer(),  # JSON output
        ],
        wrapper_class=structlog.make_filtering_bound_logger(resolved_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
    )


def get_logger(name: str = SERVICE_NAME, *, environment: str | None = None) -> FilteringBoundLogger:
    """Return a logger bound with service context.

    The logger resolves its configuration on first use, so module-level
    loggers created before ``configure_logging`` still emit JSON.
    """
    context = {"service": SERVICE_NAME, "logger_name": name}
    if environment:
        context["environment"] = environment
    return structlog.get_logger(name, **context)

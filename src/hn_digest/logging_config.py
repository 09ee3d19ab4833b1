# ABOUTME: structlog setup for CLI and server processes.
# ABOUTME: Filters by configured level and renders timestamped console output.

import logging

import structlog


def setup_logging(level: str = "INFO") -> None:
    """Configure structlog with a level filter and console renderer."""
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        cache_logger_on_first_use=True,
    )

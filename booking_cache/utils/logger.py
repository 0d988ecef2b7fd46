"""
Structured logging configuration using structlog.

Provides JSON-formatted logging with context processors for
timestamps and log levels, plus a helper for cache operation events.
"""
import logging
import os
import sys
from typing import Any, Optional

import structlog


def setup_logging(level: str = "INFO", json_logs: Optional[bool] = None) -> None:
    """
    Configure structlog for the cache layer and its host process.

    Args:
        level: Log level string (DEBUG, INFO, WARNING, ERROR, CRITICAL).
            Per-operation cache events are only emitted at DEBUG.
        json_logs: Render JSON lines; defaults to True unless
            ENVIRONMENT=development, which renders colored console output
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )
    # Keep redis-py debug output out of cache debug logs
    logging.getLogger("redis").setLevel(max(log_level, logging.WARNING))

    if json_logs is None:
        json_logs = os.getenv("ENVIRONMENT", "production") != "development"

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer(),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = __name__) -> structlog.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (typically __name__ of calling module)

    Returns:
        Configured structlog logger instance

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("redis_connected", host="localhost")
    """
    return structlog.get_logger(name)


def log_cache_operation(
    operation: str,
    key: str,
    outcome: str,
    error: BaseException | None = None,
    **extra: Any,
) -> None:
    """
    Log a single cache operation in structured format.

    Args:
        operation: Operation name (get, set, delete, ...)
        key: Logical (unprefixed) cache key or pattern
        outcome: hit, miss, ok, skipped or error
        error: Exception that caused an error outcome
        **extra: Additional context to log

    Example:
        >>> log_cache_operation("get", "user:42", "hit")
    """
    logger = get_logger("cache_operation")

    log_data = {
        "operation": operation,
        "key": key,
        "outcome": outcome,
        **extra,
    }

    if error is not None:
        logger.warning(
            f"cache_{operation}_failed",
            error=str(error),
            error_type=type(error).__name__,
            **log_data,
        )
    else:
        logger.debug(f"cache_{operation}", **log_data)

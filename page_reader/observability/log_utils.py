"""
Logging utilities for safe structured logging.

Provides helpers for safe logging without string concatenation errors,
and an async timer for logging operation durations.

Dependencies: logging (stdlib), pydantic
System role: Logging helper functions
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from pydantic import BaseModel


def safe_log_value(value: Any, max_length: int = 500) -> str:
    """
    Render a log context value without dumping large payloads.

    Embedding vectors and other sequences are summarised by length,
    chunks and other pydantic models by their id when they have one.

    Args:
        value: Value to render
        max_length: Maximum length before truncating

    Returns:
        str: Log-safe representation
    """
    try:
        if value is None:
            return "None"
        if isinstance(value, str):
            rendered = value
        elif isinstance(value, float):
            rendered = f"{value:.4f}"
        elif isinstance(value, (list, tuple)):
            rendered = f"{type(value).__name__}({len(value)} items)"
        elif isinstance(value, dict):
            rendered = f"dict({len(value)} keys)"
        elif isinstance(value, BaseModel):
            identifier = getattr(value, "id", None)
            rendered = f"{type(value).__name__}({identifier})" if identifier else type(value).__name__
        else:
            rendered = str(value)

        if len(rendered) > max_length:
            return rendered[:max_length] + f"... (truncated, {len(rendered)} total)"
        return rendered
    except Exception as e:
        return f"<unable to log: {type(e).__name__}>"


def log_with_context(
    logger: logging.Logger,
    level: int,
    message: str,
    **context,
) -> None:
    """
    Log a message with structured context, safely converting all values.

    Args:
        logger: Logger instance
        level: Log level (logging.INFO, etc.)
        message: Log message
        **context: Context dict with arbitrary key-value pairs
    """
    safe_context = {key: safe_log_value(val) for key, val in context.items()}
    logger.log(level, message, extra=safe_context)


def log_exception_with_context(
    logger: logging.Logger,
    message: str,
    exc: BaseException,
    level: int = logging.ERROR,
    **context,
) -> None:
    """
    Log an exception with full context.

    Args:
        logger: Logger instance
        message: Log message
        exc: Exception instance
        level: Log level, ERROR by default
        **context: Additional context dict
    """
    safe_context = {key: safe_log_value(val) for key, val in context.items()}
    safe_context.update(
        {
            "error_type": type(exc).__name__,
            "error_msg": safe_log_value(str(exc)),
        }
    )
    logger.log(level, message, exc_info=exc, extra=safe_context)


@asynccontextmanager
async def log_timing(
    logger: logging.Logger,
    operation: str,
    level: int = logging.DEBUG,
    **context,
) -> AsyncIterator[None]:
    """
    Log how long the wrapped block took, whether it succeeded or not.

    Args:
        logger: Logger instance
        operation: Name reported in the log line
        level: Log level for the timing line
        **context: Additional context dict

    Usage:
        async with log_timing(logger, "search_similar", url=url):
            ...
    """
    start = time.perf_counter()
    outcome = "failed"
    try:
        yield
        outcome = "completed"
    finally:
        duration_ms = (time.perf_counter() - start) * 1000
        log_with_context(
            logger,
            level,
            f"{operation} {outcome} in {duration_ms:.1f}ms",
            operation=operation,
            duration_ms=round(duration_ms, 1),
            **context,
        )

"""Logging, correlation and timing helpers."""

from page_reader.observability.correlation import (
    clear_correlation_id,
    get_correlation_id,
    set_correlation_id,
)
from page_reader.observability.logger import configure_logging, get_logger

__all__ = [
    "clear_correlation_id",
    "configure_logging",
    "get_correlation_id",
    "get_logger",
    "set_correlation_id",
]

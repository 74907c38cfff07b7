"""Tests for logging helpers and correlation IDs."""

import logging

import pytest

from page_reader.boundary.vdb.vector_schemas import StoredChunk
from page_reader.observability.correlation import (
    CorrelationIdFilter,
    clear_correlation_id,
    get_correlation_id,
    set_correlation_id,
)
from page_reader.observability.log_utils import (
    log_exception_with_context,
    log_timing,
    safe_log_value,
)
from page_reader.observability.logger import configure_logging

logger = logging.getLogger("page_reader.tests")


class TestCorrelationId:
    """Context-local correlation IDs."""

    def test_set_get_clear(self) -> None:
        assert set_correlation_id("abc") == "abc"
        assert get_correlation_id() == "abc"

        clear_correlation_id()

        assert get_correlation_id() == ""

    def test_generates_id_when_missing(self) -> None:
        generated = set_correlation_id()

        assert len(generated) == 32
        assert get_correlation_id() == generated
        clear_correlation_id()

    def test_filter_stamps_records(self) -> None:
        """Records get the current ID, or '-' when none is set."""
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)

        CorrelationIdFilter().filter(record)
        assert record.correlation_id == "-"

        set_correlation_id("req-1")
        CorrelationIdFilter().filter(record)
        assert record.correlation_id == "req-1"
        clear_correlation_id()


class TestSafeLogValue:
    """Value rendering for log context."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (None, "None"),
            ("text", "text"),
            ([1, 2, 3], "list(3 items)"),
            ({"a": 1}, "dict(1 keys)"),
            (42, "42"),
            (0.123456, "0.1235"),
            (StoredChunk(id="c1", url="u", text="t"), "StoredChunk(c1)"),
        ],
    )
    def test_renders_values(self, value, expected) -> None:
        assert safe_log_value(value) == expected

    def test_truncates_long_values(self) -> None:
        rendered = safe_log_value("x" * 20, max_length=5)

        assert rendered.startswith("xxxxx... (truncated, 20 total)")


class TestLogHelpers:
    """Structured log helpers."""

    @pytest.mark.asyncio
    async def test_log_timing_reports_outcome(self, caplog) -> None:
        """Completed and failed blocks are both timed."""
        # Arrange
        caplog.set_level(logging.DEBUG, logger="page_reader.tests")

        # Act
        async with log_timing(logger, "embed", url="https://example.com"):
            pass
        with pytest.raises(RuntimeError):
            async with log_timing(logger, "search"):
                raise RuntimeError("boom")

        # Assert
        messages = [record.getMessage() for record in caplog.records]
        assert messages[0].startswith("embed completed in")
        assert messages[1].startswith("search failed in")
        assert caplog.records[0].url == "https://example.com"

    def test_log_exception_with_context(self, caplog) -> None:
        """Exception type and message are attached to the record."""
        caplog.set_level(logging.WARNING, logger="page_reader.tests")

        log_exception_with_context(
            logger, "failed", ValueError("bad"), level=logging.WARNING, url="u"
        )

        record = caplog.records[0]
        assert record.levelno == logging.WARNING
        assert record.error_type == "ValueError"
        assert record.error_msg == "bad"
        assert record.url == "u"


class TestConfigureLogging:
    """Root logger configuration."""

    def test_installs_single_handler_with_filter(self) -> None:
        """Reconfiguring replaces handlers instead of stacking them."""
        # Arrange
        root = logging.getLogger()
        saved_handlers = root.handlers[:]
        saved_level = root.level

        try:
            # Act
            configure_logging("debug")
            configure_logging("WARNING")

            # Assert
            assert len(root.handlers) == 1
            assert root.level == logging.WARNING
            assert any(
                isinstance(f, CorrelationIdFilter) for f in root.handlers[0].filters
            )
            assert logging.getLogger("httpx").level == logging.WARNING
        finally:
            for handler in root.handlers[:]:
                root.removeHandler(handler)
            for handler in saved_handlers:
                root.addHandler(handler)
            root.setLevel(saved_level)

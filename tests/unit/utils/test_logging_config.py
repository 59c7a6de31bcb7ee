"""Tests for logging configuration utilities."""

import json
import logging
import sys

import pytest

from gluapack.core.utils.logging import (
    StructuredJSONFormatter,
    configure_logging,
    get_logger,
    log_performance,
)


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Undo configure_logging() after each test."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


class TestConfigureLogging:
    """Test application-wide logging setup."""

    def test_sets_level(self):
        configure_logging(level="debug")
        assert logging.getLogger().level == logging.DEBUG

    def test_unknown_level(self):
        with pytest.raises(ValueError, match="Unknown log level"):
            configure_logging(level="chatty")

    def test_structured_handler(self):
        configure_logging(level="INFO", structured=True)
        (handler,) = logging.getLogger().handlers
        assert isinstance(handler.formatter, StructuredJSONFormatter)

    def test_log_file(self, tmp_path):
        log_file = tmp_path / "pack.log"
        configure_logging(level="INFO", filename=str(log_file))
        logging.getLogger("gluapack.test").info("written to file")
        for handler in logging.getLogger().handlers:
            handler.flush()
        assert "written to file" in log_file.read_text()


class TestStructuredJSONFormatter:
    """Test JSON log lines."""

    def test_includes_extra_context(self):
        record = logging.LogRecord(
            name="gluapack.packer",
            level=logging.INFO,
            pathname=__file__,
            lineno=1,
            msg="Packed %d files",
            args=(3,),
            exc_info=None,
        )
        record.realm = "sh"

        entry = json.loads(StructuredJSONFormatter().format(record))

        assert entry["level"] == "INFO"
        assert entry["message"] == "Packed 3 files"
        assert entry["context"]["logger_name"] == "gluapack.packer"
        assert entry["context"]["realm"] == "sh"

    def test_includes_exception(self):
        try:
            raise RuntimeError("broken")
        except RuntimeError:
            record = logging.LogRecord(
                "x", logging.ERROR, __file__, 1, "failed", (), sys.exc_info()
            )

        entry = json.loads(StructuredJSONFormatter().format(record))
        assert entry["context"]["error_type"] == "RuntimeError"
        assert entry["context"]["error_message"] == "broken"


class TestGetLogger:
    """Test logger retrieval."""

    def test_plain_logger(self):
        assert isinstance(get_logger("gluapack.x"), logging.Logger)

    def test_adapter_with_context(self):
        adapter = get_logger("gluapack.x", addon="my_addon")
        assert isinstance(adapter, logging.LoggerAdapter)
        assert adapter.extra == {"addon": "my_addon"}


class TestLogPerformance:
    """Test the timing decorator."""

    def test_sync(self, caplog):
        @log_performance
        def add(a, b):
            return a + b

        with caplog.at_level(logging.DEBUG):
            assert add(1, 2) == 3
        assert "'add' took" in caplog.text

    async def test_async(self, caplog):
        @log_performance
        async def double(a):
            return a * 2

        with caplog.at_level(logging.DEBUG):
            assert await double(4) == 8
        assert "'double' took" in caplog.text

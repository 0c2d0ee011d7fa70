"""
Tests for logging configuration.
"""

import json
import logging
import logging.handlers

import pytest

from netlens.common.logging_config import (
    ROOT_LOGGER_NAME,
    PERFORMANCE_LOGGER_NAME,
    JSONFormatter,
    LoggingTimer,
    configure_external_library_logging,
    get_logger,
    log_performance_metric,
    setup_logging
)


@pytest.fixture
def clean_root_logger():
    """Remove handlers installed on the netlens logger by a test."""
    root = logging.getLogger(ROOT_LOGGER_NAME)
    saved_handlers = list(root.handlers)
    saved_level = root.level
    saved_propagate = root.propagate
    yield root
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    for handler in saved_handlers:
        root.addHandler(handler)
    root.setLevel(saved_level)
    root.propagate = saved_propagate


class TestGetLogger:
    """Test logger naming."""

    def test_module_loggers_live_under_root(self):
        """Test module loggers are children of the netlens logger."""
        root = logging.getLogger(ROOT_LOGGER_NAME)
        logger = get_logger("netlens.network.analysis")

        assert logger.name == "netlens.network.analysis"
        assert logger.parent is root or logger.parent.name == "netlens.network"


class TestSetupLogging:
    """Test handler installation."""

    def test_console_only(self, clean_root_logger):
        """Test the default setup installs a single console handler."""
        logger = setup_logging(level="DEBUG", console=True, force_setup=True)

        assert logger is clean_root_logger
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], logging.StreamHandler)
        assert logger.propagate is False

    def test_log_dir_creates_rotating_file(self, clean_root_logger, tmp_path):
        """Test a log directory produces netlens.log."""
        logger = setup_logging(level="INFO", log_dir=str(tmp_path), console=False, force_setup=True)
        logger.info("hello")

        handlers = [h for h in logger.handlers if isinstance(h, logging.handlers.RotatingFileHandler)]
        assert len(handlers) == 1
        handlers[0].flush()
        assert "hello" in (tmp_path / "netlens.log").read_text(encoding="utf-8")

    def test_environment_variables(self, clean_root_logger, monkeypatch, tmp_path):
        """Test configuration falls back to environment variables."""
        log_file = tmp_path / "env.log"
        monkeypatch.setenv("NETLENS_LOG_LEVEL", "WARNING")
        monkeypatch.setenv("NETLENS_LOG_FILE", str(log_file))
        monkeypatch.setenv("NETLENS_LOG_CONSOLE", "false")

        logger = setup_logging(force_setup=True)

        assert logger.level == logging.WARNING
        assert len(logger.handlers) == 1
        assert logger.handlers[0].baseFilename == str(log_file)

    def test_existing_handlers_kept_without_force(self, clean_root_logger):
        """Test setup is a no-op once handlers exist."""
        setup_logging(level="INFO", console=True, force_setup=True)
        handlers = list(clean_root_logger.handlers)

        setup_logging(level="DEBUG", console=True)
        assert clean_root_logger.handlers == handlers

    def test_invalid_level(self, clean_root_logger):
        """Test an unknown level is rejected."""
        with pytest.raises(ValueError, match="Invalid logging level"):
            setup_logging(level="CHATTY", console=False, force_setup=True)


class TestJSONFormatter:
    """Test JSON output."""

    def test_extra_fields_included(self):
        """Test fields passed via extra= end up in the JSON object."""
        record = logging.LogRecord(
            name="netlens.test", level=logging.INFO, pathname=__file__, lineno=1,
            msg="took %s", args=("1s",), exc_info=None
        )
        record.duration = 1.5

        payload = json.loads(JSONFormatter().format(record))

        assert payload["message"] == "took 1s"
        assert payload["level"] == "INFO"
        assert payload["logger"] == "netlens.test"
        assert payload["duration"] == 1.5


class TestPerformanceLogging:
    """Test timing helpers."""

    def test_log_performance_metric(self, caplog):
        """Test performance records carry the operation and duration."""
        with caplog.at_level(logging.INFO, logger=PERFORMANCE_LOGGER_NAME):
            log_performance_metric("louvain", 0.25, {"nodes": 34})

        record = caplog.records[-1]
        assert record.operation == "louvain"
        assert record.duration == 0.25
        assert "nodes=34" in record.getMessage()

    def test_logging_timer_records_duration(self):
        """Test the timer stores the elapsed time."""
        with LoggingTimer("noop") as timer:
            pass

        assert timer.duration is not None
        assert timer.duration >= 0.0

    def test_logging_timer_marks_failures(self, caplog):
        """Test failed blocks are flagged and the exception propagates."""
        with caplog.at_level(logging.INFO, logger=PERFORMANCE_LOGGER_NAME):
            with pytest.raises(RuntimeError):
                with LoggingTimer("explode"):
                    raise RuntimeError("boom")

        assert "failed=RuntimeError" in caplog.records[-1].getMessage()


class TestExternalLibraryLogging:
    """Test third-party logger configuration."""

    def test_default_levels(self):
        """Test third-party loggers are set to WARNING."""
        configure_external_library_logging()
        assert logging.getLogger("networkit").level == logging.WARNING
        assert logging.getLogger("polars").level == logging.WARNING

    def test_custom_levels(self):
        """Test explicit levels and ignored unknown levels."""
        configure_external_library_logging({"netlens_test_lib": "ERROR", "other_lib": "NOPE"})
        assert logging.getLogger("netlens_test_lib").level == logging.ERROR
        assert logging.getLogger("other_lib").level == logging.NOTSET

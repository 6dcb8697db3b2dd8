"""
Tests for logging_config module.
"""

import logging

from src.infra.logging_config import LOGGER_NAME, DailyRotatingFileHandler, setup_logging


class TestDailyRotatingFileHandler:
    """Tests for DailyRotatingFileHandler class."""

    def test_handler_creates_log_directory(self, tmp_path):
        """Test that handler creates log directory if it doesn't exist."""
        log_dir = tmp_path / "new_logs"
        assert not log_dir.exists()

        handler = DailyRotatingFileHandler(log_dir=str(log_dir))
        assert log_dir.exists()
        handler.close()

    def test_handler_creates_log_file(self, tmp_path):
        """Test that handler creates a log file with correct naming."""
        handler = DailyRotatingFileHandler(log_dir=str(tmp_path))

        log_files = list(tmp_path.glob("task_scheduler_*.log"))
        assert len(log_files) == 1

        # task_scheduler_YYYYMMDD_HHMMSS.log
        parts = log_files[0].stem.split("_")
        assert len(parts[2]) == 8
        assert len(parts[3]) == 6
        handler.close()

    def test_handler_emits_record(self, tmp_path):
        """Test that handler writes log records to file."""
        handler = DailyRotatingFileHandler(log_dir=str(tmp_path))
        handler.setFormatter(logging.Formatter('%(message)s'))

        record = logging.LogRecord(
            name="test",
            level=logging.INFO,
            pathname="",
            lineno=0,
            msg="Test message",
            args=(),
            exc_info=None
        )
        handler.emit(record)
        handler.close()

        log_files = list(tmp_path.glob("task_scheduler_*.log"))
        content = log_files[0].read_text()
        assert "Test message" in content

    def test_handler_switches_file_on_date_change(self, tmp_path):
        """A stale date makes the next emit reopen the file for today."""
        handler = DailyRotatingFileHandler(log_dir=str(tmp_path))
        handler.setFormatter(logging.Formatter('%(message)s'))
        handler._current_date = "19700101"

        record = logging.LogRecord("test", logging.INFO, "", 0, "After rotation", (), None)
        handler.emit(record)
        handler.close()

        assert handler._current_date != "19700101"
        assert "After rotation" in open(handler.baseFilename, encoding="utf-8").read()


class TestSetupLogging:
    """Tests for setup_logging function."""

    def test_returns_package_logger(self, tmp_path):
        """Test that setup_logging returns the package logger."""
        logger = setup_logging("INFO", log_dir=str(tmp_path))

        assert isinstance(logger, logging.Logger)
        assert logger.name == LOGGER_NAME

    def test_sets_correct_log_level(self, tmp_path):
        """Test that setup_logging sets the correct log level."""
        logger = setup_logging("DEBUG", log_dir=str(tmp_path))
        assert logger.level == logging.DEBUG

        logger = setup_logging("WARNING", log_dir=str(tmp_path))
        assert logger.level == logging.WARNING

    def test_unknown_level_falls_back_to_info(self):
        logger = setup_logging("LOUD", log_dir=None)
        assert logger.level == logging.INFO

    def test_console_only(self, tmp_path):
        """log_dir=None adds a console handler and no file handler."""
        logger = setup_logging("INFO", log_dir=None)

        assert len(logger.handlers) == 1
        assert not isinstance(logger.handlers[0], logging.FileHandler)
        assert list(tmp_path.iterdir()) == []

    def test_adds_console_and_file_handler(self, tmp_path):
        logger = setup_logging("INFO", log_dir=str(tmp_path))

        assert any(isinstance(h, DailyRotatingFileHandler) for h in logger.handlers)
        assert any(
            isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
            for h in logger.handlers
        )

    def test_repeated_setup_does_not_duplicate_handlers(self, tmp_path):
        setup_logging("INFO", log_dir=str(tmp_path))
        logger = setup_logging("INFO", log_dir=str(tmp_path))

        assert len(logger.handlers) == 2

    def test_module_loggers_write_to_file(self, tmp_path):
        """Loggers under the package reach the daily log file."""
        setup_logging("INFO", log_dir=str(tmp_path))

        logging.getLogger("src.scheduler.dedup_scheduler").info("Duplicate action detected")
        for handler in logging.getLogger(LOGGER_NAME).handlers:
            handler.flush()

        content = next(tmp_path.glob("task_scheduler_*.log")).read_text()
        assert "src.scheduler.dedup_scheduler - INFO - Duplicate action detected" in content

    def test_prevents_propagation(self):
        """Test that logger propagation is disabled."""
        logger = setup_logging("INFO", log_dir=None)
        assert logger.propagate is False

"""Tests for logging setup."""

import logging
import logging.handlers

import pytest

from nebula_library.utils.logging_config import (
    NOISY_LOGGERS,
    ColoredFormatter,
    configure_third_party_loggers,
    setup_logging,
)


@pytest.fixture
def root_logger():
    """Restore the root logger after a test reconfigures it."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


class TestSetupLogging:
    """Test root logger configuration."""

    def test_console_only(self, root_logger):
        """Test the default setup logs warnings to stderr only."""
        setup_logging()

        assert root_logger.level == logging.WARNING
        assert len(root_logger.handlers) == 1
        assert isinstance(root_logger.handlers[0], logging.StreamHandler)

    def test_log_file(self, root_logger, tmp_path):
        """Test a rotating log file receives records with locations."""
        log_file = tmp_path / "logs" / "library.log"

        setup_logging("INFO", log_file)
        logging.getLogger("nebula_library.test").info("scanned %d files", 3)
        for handler in root_logger.handlers:
            handler.flush()

        assert any(
            isinstance(h, logging.handlers.RotatingFileHandler)
            for h in root_logger.handlers
        )
        content = log_file.read_text()
        assert "scanned 3 files" in content
        assert "test_logging_config.py" in content

    def test_unknown_level_falls_back_to_warning(self, root_logger):
        """Test an unknown level name does not fail."""
        setup_logging("LOUD")

        assert root_logger.level == logging.WARNING

    def test_repeated_setup_replaces_handlers(self, root_logger):
        """Test calling setup twice does not duplicate output."""
        setup_logging()
        setup_logging()

        assert len(root_logger.handlers) == 1


class TestColoredFormatter:
    """Test console coloring."""

    def test_level_name_colored_and_restored(self):
        """Test the level is colored in output but not on the record."""
        formatter = ColoredFormatter("%(levelname)s %(message)s")
        record = logging.LogRecord("x", logging.ERROR, __file__, 1, "boom", None, None)

        output = formatter.format(record)

        assert output.startswith("\033[31mERROR\033[0m")
        assert record.levelname == "ERROR"


def test_third_party_loggers_quieted():
    """Test chatty library loggers stay at WARNING."""
    logging.getLogger("sqlalchemy").setLevel(logging.DEBUG)

    configure_third_party_loggers()

    for name in NOISY_LOGGERS:
        assert logging.getLogger(name).level == logging.WARNING

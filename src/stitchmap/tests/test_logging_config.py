"""Tests for logging configuration."""
import logging
from logging.handlers import TimedRotatingFileHandler

import pytest

from stitchmap.config import settings
from stitchmap.logging_config import LOG_FILE_NAME, get_logger, setup_logging


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Remove the handlers installed by setup_logging."""
    root_logger = logging.getLogger()
    level = root_logger.level
    yield
    for handler in root_logger.handlers[:]:
        if type(handler) in (logging.StreamHandler, TimedRotatingFileHandler):
            root_logger.removeHandler(handler)
            handler.close()
    root_logger.setLevel(level)


def test_setup_logging_console(monkeypatch):
    """Test console logging replaces existing handlers."""
    monkeypatch.setattr(settings.logging, "dir", None)
    setup_logging("Starting StitchMap", level="warning")

    root_logger = logging.getLogger()
    assert root_logger.level == logging.WARNING
    assert len(root_logger.handlers) == 1
    assert isinstance(root_logger.handlers[0], logging.StreamHandler)
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING


def test_setup_logging_file(monkeypatch, tmp_path):
    """Test a rotating log file is added when a log directory is configured."""
    log_dir = tmp_path / "logs"
    monkeypatch.setattr(settings.logging, "dir", str(log_dir))
    setup_logging(level=logging.DEBUG)

    file_handlers = [
        handler for handler in logging.getLogger().handlers
        if isinstance(handler, TimedRotatingFileHandler)
    ]
    assert len(file_handlers) == 1
    get_logger("stitchmap.test").debug("written to file")
    file_handlers[0].flush()
    assert "written to file" in (log_dir / LOG_FILE_NAME).read_text(encoding="utf-8")


def test_get_logger():
    """Test named loggers are returned."""
    assert get_logger("stitchmap.services").name == "stitchmap.services"


if __name__ == "__main__":
    pytest.main([__file__])

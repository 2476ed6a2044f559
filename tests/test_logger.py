"""
Tests for logging setup.
"""

import logging
import sys

import pytest

from profile_sync.utils.logger import get_logger, setup_logging


@pytest.fixture
def root_logger():
    """Restore the root logger configuration after each test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    urllib3_level = logging.getLogger("urllib3").level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
    logging.getLogger("urllib3").setLevel(urllib3_level)


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_logs_go_to_stderr(self, root_logger):
        setup_logging("DEBUG")

        streams = [h.stream for h in root_logger.handlers if isinstance(h, logging.StreamHandler)]
        assert streams == [sys.stderr]
        assert root_logger.level == logging.DEBUG

    def test_urllib3_is_quieted(self, root_logger):
        setup_logging("DEBUG")
        assert logging.getLogger("urllib3").level == logging.WARNING

    def test_log_file(self, root_logger, tmp_path):
        log_file = tmp_path / "logs" / "sync.log"
        setup_logging("INFO", log_file=str(log_file))

        get_logger("profile_sync.test").info("written")
        for handler in root_logger.handlers:
            handler.flush()

        assert "written" in log_file.read_text()

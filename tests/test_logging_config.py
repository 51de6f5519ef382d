"""
Tests for queue-based logging setup.
"""

import logging
import logging.handlers

import pytest

from event_collector.logging_config import ThreadSafeLoggingConfig


@pytest.fixture
def restore_root_logger():
    root_logger = logging.getLogger()
    handlers, level = list(root_logger.handlers), root_logger.level
    library_levels = {name: logging.getLogger(name).level for name in ("sqlalchemy.engine", "werkzeug")}
    yield root_logger
    root_logger.handlers[:] = handlers
    root_logger.setLevel(level)
    for name, library_level in library_levels.items():
        logging.getLogger(name).setLevel(library_level)


class TestThreadSafeLoggingConfig:
    """Test logging setup and teardown."""

    def test_root_logs_through_queue(self, restore_root_logger):
        config = ThreadSafeLoggingConfig()
        try:
            config.setup_logging("WARNING")

            assert len(restore_root_logger.handlers) == 1
            assert isinstance(restore_root_logger.handlers[0], logging.handlers.QueueHandler)
            assert restore_root_logger.level == logging.WARNING
            assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
        finally:
            config.stop()

    def test_debug_mode(self, restore_root_logger):
        config = ThreadSafeLoggingConfig()
        try:
            config.setup_logging("WARNING", debug=True)
            assert restore_root_logger.level == logging.DEBUG
        finally:
            config.stop()

    def test_unknown_level_defaults_to_info(self, restore_root_logger):
        config = ThreadSafeLoggingConfig()
        try:
            config.setup_logging("CHATTY")
            assert restore_root_logger.level == logging.INFO
        finally:
            config.stop()

    def test_setup_twice_replaces_listener(self, restore_root_logger):
        config = ThreadSafeLoggingConfig()
        try:
            config.setup_logging()
            first = config._log_listener
            config.setup_logging()
            assert config._log_listener is not first
        finally:
            config.stop()

        assert config._log_listener is None

"""
Logging Configuration Module

Thread-safe logging for the event collector. Request threads and the
statistics worker pool all log through a queue so lines never interleave.
"""

import logging
import logging.handlers
import sys
from queue import Queue
from typing import Optional


class ThreadSafeLoggingConfig:
    """Thread-safe logging configuration with queue-based logging."""

    def __init__(self):
        self._log_listener: Optional[logging.handlers.QueueListener] = None
        self._log_queue: Optional[Queue] = None

    def setup_logging(self, level: str = "INFO", debug: bool = False) -> None:
        """
        Configure queue-based logging on the root logger.

        Args:
            level: Log level name used when not in debug mode
            debug: Whether to enable debug logging and keep library loggers verbose
        """
        # Restarting replaces the previous listener
        self.stop()

        self._log_queue = Queue()
        queue_handler = logging.handlers.QueueHandler(self._log_queue)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s")
        )

        self._log_listener = logging.handlers.QueueListener(
            self._log_queue, console_handler, respect_handler_level=True
        )
        self._log_listener.start()

        root_logger = logging.getLogger()
        root_logger.handlers.clear()
        root_logger.addHandler(queue_handler)
        if debug:
            root_logger.setLevel(logging.DEBUG)
        else:
            root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
            self._silence_noisy_libraries()

    def _silence_noisy_libraries(self) -> None:
        """Cap chatty third-party loggers at WARNING."""
        noisy_loggers = [
            "sqlalchemy.engine",
            "sqlalchemy.pool",
            "werkzeug",
            "urllib3",
        ]

        for name in noisy_loggers:
            logging.getLogger(name).setLevel(logging.WARNING)

    def stop(self) -> None:
        """Stop the logging listener and cleanup."""
        if self._log_listener:
            self._log_listener.stop()
            self._log_listener = None
        if self._log_queue:
            self._log_queue = None


# Global logging configuration instance
logging_config = ThreadSafeLoggingConfig()


def setup_logging(level: str = "INFO", debug: bool = False) -> None:
    """
    Setup thread-safe logging configuration.

    Args:
        level: Log level name
        debug: Whether to enable debug logging
    """
    logging_config.setup_logging(level, debug)


def stop_logging() -> None:
    """Stop the logging listener and cleanup."""
    logging_config.stop()

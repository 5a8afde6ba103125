"""Logging configuration for the Sakura sync backend."""

from __future__ import annotations

import logging
import sys
import time
from typing import Any

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d | %(message)s"


def setup_logging(level: int | str = logging.INFO) -> logging.Logger:
    """Configure and return the application logger.

    Safe to call more than once; later calls only adjust the level.
    """
    logger = logging.getLogger("sakura")
    logger.setLevel(level)

    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(level)
        return logger

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    logger.addHandler(handler)
    logger.propagate = False

    return logger


def get_logger(name: str = "sakura") -> logging.Logger:
    """Get a logger instance with the given name."""
    return logging.getLogger(name)


class LogContext:
    """Log the start, completion or failure of an operation with its context."""

    def __init__(self, logger: logging.Logger, operation: str, **context: Any) -> None:
        self.logger = logger
        self.operation = operation
        self.context = context
        self._started = 0.0

    def _describe(self) -> str:
        if not self.context:
            return self.operation
        pairs = " ".join(f"{key}={value}" for key, value in self.context.items())
        return f"{self.operation} ({pairs})"

    def __enter__(self) -> "LogContext":
        self._started = time.perf_counter()
        self.logger.info(f"Starting {self._describe()}")
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: Any) -> bool:
        elapsed_ms = (time.perf_counter() - self._started) * 1000
        if exc_type is not None:
            self.logger.error(
                f"Failed {self._describe()} after {elapsed_ms:.1f}ms: {exc_val}",
                exc_info=(exc_type, exc_val, exc_tb),
            )
        else:
            self.logger.info(f"Completed {self._describe()} in {elapsed_ms:.1f}ms")
        return False


# Initialize default logger
logger = setup_logging()

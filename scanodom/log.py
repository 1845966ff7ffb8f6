"""Logger setup: a default logger, a shared ring buffer and per-module loggers."""

from __future__ import annotations

import logging
import os
import sys
import tempfile
import threading
from collections import deque
from typing import Optional

_FORMAT = "[%(asctime)s] [%(name)s] [%(levelname)s] %(message)s"

_default_logger: logging.Logger = logging.getLogger("scanodom")
_ringbuffer: Optional["RingBufferHandler"] = None
_module_loggers: dict[str, logging.Logger] = {}
_lock = threading.Lock()


class RingBufferHandler(logging.Handler):
    """Keeps the most recent log records in memory."""

    def __init__(self, buffer_size: int = 128) -> None:
        super().__init__()
        self._records: deque[logging.LogRecord] = deque(maxlen=buffer_size)
        self.setFormatter(logging.Formatter(_FORMAT))

    def emit(self, record: logging.LogRecord) -> None:
        self._records.append(record)

    def last_formatted(self) -> list[str]:
        """Formatted messages of the buffered records, oldest first."""
        with self.lock:
            records = list(self._records)
        return [self.format(record) for record in records]


def get_default_logger() -> logging.Logger:
    """Return the current default logger."""
    return _default_logger


def set_default_logger(logger: logging.Logger) -> None:
    """Replace the default logger."""
    global _default_logger
    if not isinstance(logger, logging.Logger):
        raise TypeError(f"expected a logging.Logger, got {type(logger).__name__}")
    with _lock:
        _default_logger = logger


def get_ringbuffer_sink(buffer_size: int = 128) -> RingBufferHandler:
    """Return the shared ring buffer, creating it with the given size on first use."""
    global _ringbuffer
    with _lock:
        if _ringbuffer is None:
            _ringbuffer = RingBufferHandler(buffer_size)
        return _ringbuffer


def create_module_logger(module_name: str) -> logging.Logger:
    """Return the logger for a module, creating it on first use.

    The logger writes to stdout and the shared ring buffer; when the default
    logger is more verbose than INFO it also writes to a log file in the
    temporary directory and takes over the default logger's level.
    """
    ringbuffer = get_ringbuffer_sink()
    with _lock:
        existing = _module_loggers.get(module_name)
        if existing is not None:
            return existing

        logger = logging.getLogger(f"scanodom.module.{module_name}")
        logger.propagate = False
        logger.setLevel(logging.INFO)

        stream = logging.StreamHandler(sys.stdout)
        stream.setFormatter(logging.Formatter(_FORMAT))
        logger.addHandler(stream)
        logger.addHandler(ringbuffer)

        default_level = _default_logger.getEffectiveLevel()
        if default_level < logging.INFO:
            path = os.path.join(tempfile.gettempdir(), f"scanodom_{module_name}.log")
            file_handler = logging.FileHandler(path, mode="w", encoding="utf-8")
            file_handler.setFormatter(logging.Formatter(_FORMAT))
            logger.addHandler(file_handler)
            logger.setLevel(default_level)

        _module_loggers[module_name] = logger
        return logger
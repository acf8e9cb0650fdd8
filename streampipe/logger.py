"""Process-wide pipeline logger writing to the console and to a file."""

from __future__ import annotations

import logging
import sys

LOGGER_NAME = "pipeline_logger"
_FORMAT = "[%(asctime)s] [%(name)s] [%(levelname)s] %(message)s"

_initialized = False


def get_logger() -> logging.Logger:
    """Return the shared pipeline logger."""
    return logging.getLogger(LOGGER_NAME)


def init_logger(filename: str = "pipeline.log") -> logging.Logger:
    """Set up the shared logger once: INFO and above to stdout, DEBUG and above to ``filename``.

    The file is truncated. Later calls leave the logger as it is. If the file
    cannot be opened, a message goes to stderr and the logger stays unconfigured.
    """
    global _initialized
    logger = get_logger()
    if _initialized:
        return logger

    try:
        file_handler = logging.FileHandler(filename, mode="w", encoding="utf-8")
    except OSError as exc:
        print(f"Logger initialization failed: {exc}", file=sys.stderr)
        return logger

    formatter = logging.Formatter(_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)

    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)

    logger.addHandler(console_handler)
    logger.addHandler(file_handler)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    _initialized = True

    logger.info("Logger initialized. Writing to console and %s", filename)
    return logger


def _reset_logger() -> None:
    """Detach and close all handlers so the logger can be set up again."""
    global _initialized
    logger = get_logger()
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    _initialized = False
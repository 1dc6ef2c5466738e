from __future__ import annotations

import logging
import os
import sys

LOGGER_NAME = "shuttering"

# Numeric LOG_LEVEL values as used by the Node asset tooling.
_NUMERIC_LEVELS = {
    0: logging.ERROR,
    1: logging.WARNING,
    2: logging.INFO,
    3: logging.INFO,
}

_HANDLER_ATTR = "_shuttering_console"


def parse_level(raw: str | int | None) -> int:
    """Map a LOG_LEVEL value (name or number) to a ``logging`` level."""

    if raw is None:
        return logging.INFO
    if isinstance(raw, int):
        return _NUMERIC_LEVELS.get(raw, logging.DEBUG if raw > 3 else logging.ERROR)

    value = raw.strip()
    if not value:
        return logging.INFO
    if value.lstrip("-").isdigit():
        return parse_level(int(value))

    level = logging.getLevelName(value.upper())
    return level if isinstance(level, int) else logging.INFO


def configure_logging(level: str | int | None = None) -> logging.Logger:
    """Attach one console handler (stderr) to the package logger.

    Safe to call more than once: the level is refreshed and the existing handler is pointed
    at the current ``sys.stderr``. Stdout stays free for the machine-readable output blocks.
    """

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(parse_level(level if level is not None else os.getenv("LOG_LEVEL")))

    for handler in logger.handlers:
        if getattr(handler, _HANDLER_ATTR, False):
            handler.setStream(sys.stderr)
            return logger

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(
        logging.Formatter("%(asctime)s - %(levelname)s - %(message)s", datefmt="%H:%M:%S")
    )
    setattr(console_handler, _HANDLER_ATTR, True)
    logger.addHandler(console_handler)
    return logger

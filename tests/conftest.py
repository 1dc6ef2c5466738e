from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest

from shuttering.logs import LOGGER_NAME, configure_logging


@pytest.fixture(autouse=True)
def _console_logging_on_current_stderr() -> Iterator[None]:
    configure_logging()
    yield
    # Drop the console handler so it never outlives the (captured) stream it was bound to.
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        if getattr(handler, "_shuttering_console", False):
            logger.removeHandler(handler)

from __future__ import annotations

import io
import logging
import sys

from shuttering.logs import LOGGER_NAME, configure_logging, parse_level


def test_parse_level_accepts_names_and_numbers() -> None:
    assert parse_level(None) == logging.INFO
    assert parse_level("debug") == logging.DEBUG
    assert parse_level("WARN") == logging.WARNING
    assert parse_level("0") == logging.ERROR
    assert parse_level("1") == logging.WARNING
    assert parse_level("3") == logging.INFO
    assert parse_level("5") == logging.DEBUG
    assert parse_level("nonsense") == logging.INFO


def test_configure_logging_is_idempotent(monkeypatch) -> None:
    monkeypatch.setenv("LOG_LEVEL", "debug")
    logger = configure_logging()
    configure_logging()

    consoles = [h for h in logger.handlers if getattr(h, "_shuttering_console", False)]
    assert len(consoles) == 1
    assert logging.getLogger(LOGGER_NAME).level == logging.DEBUG


def test_configure_logging_follows_current_stderr(monkeypatch) -> None:
    first, second = io.StringIO(), io.StringIO()

    monkeypatch.setattr(sys, "stderr", first)
    logger = configure_logging("info")
    logger.info("to first")

    monkeypatch.setattr(sys, "stderr", second)
    configure_logging("info")
    logger.info("to second")

    assert "INFO - to first" in first.getvalue()
    assert "to second" not in first.getvalue()
    assert "INFO - to second" in second.getvalue()


def test_stage_records_reach_caplog(caplog) -> None:
    logger = configure_logging("info")
    with caplog.at_level(logging.INFO, logger=LOGGER_NAME):
        logging.getLogger("shuttering.builder").info("Build complete!")
    assert "Build complete!" in caplog.messages
    assert logger.propagate is True

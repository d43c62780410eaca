"""Tests for the entry point's logging setup."""

import logging

from salon_os.main import setup_logging


def test_setup_logging_quiets_sql_engine(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    engine_logger = logging.getLogger("sqlalchemy.engine")
    previous = engine_logger.level
    try:
        setup_logging()
        assert engine_logger.level == logging.WARNING
    finally:
        engine_logger.setLevel(previous)

"""Tests for logging setup."""
import logging

import pytest

from homelogger import logging as app_logging


@pytest.fixture
def fresh_logging(monkeypatch):
    """Undo configure() so each test starts unconfigured."""
    app_logger = logging.getLogger("homelogger")
    handlers = list(app_logger.handlers)
    level = app_logger.level
    monkeypatch.setattr(app_logging, "_configured", False)
    yield app_logger
    app_logger.handlers = handlers
    app_logger.setLevel(level)


def test_configure_adds_one_handler(fresh_logging):
    before = len(fresh_logging.handlers)

    app_logging.configure(logging.DEBUG)
    app_logging.configure(logging.INFO)

    assert len(fresh_logging.handlers) == before + 1
    assert fresh_logging.level == logging.DEBUG
    assert logging.getLogger("aiosqlite").level == logging.WARNING


def test_get_logger_namespace():
    assert app_logging.get_logger("sensor.polling").name == "homelogger.sensor.polling"

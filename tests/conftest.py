"""Shared pytest fixtures for the test suite."""

import logging
import sys
from unittest.mock import AsyncMock, MagicMock

import pytest

# Mock hardware-specific modules before they're imported
# These are only available on Raspberry Pi hardware
sys.modules["smbus2"] = MagicMock()
sys.modules["bme280"] = MagicMock()

from homelogger.lib.config import Settings
from homelogger.lib.config.testing import set_settings
from homelogger.sensor.models import Reading, Sample


@pytest.fixture(autouse=True)
def configure_caplog(caplog):
    """Ensure caplog captures logs from the homelogger namespace."""
    caplog.set_level(logging.DEBUG, logger="homelogger")


@pytest.fixture(autouse=True)
def reset_settings():
    """Reset global settings after each test to avoid cross-test pollution."""
    yield
    set_settings(None)


@pytest.fixture
def db_path(tmp_path):
    """Path of a fresh SQLite database file for this test."""
    return str(tmp_path / "test.sqlite3")


@pytest.fixture(autouse=True)
def test_settings(db_path):
    """Point the store at a temporary database and pin the device label.

    The database file is created lazily by the first connect() and cleaned
    up with tmp_path.
    """
    settings = Settings(
        db_dsn=db_path,
        device_name="test-room",
        notification_sender="homelogger-test",
    )
    set_settings(settings)
    return settings


@pytest.fixture
def sample():
    """A typical BME280 sample."""
    return Sample(temperature=21.456, pressure=1013.2, humidity=55.7)


@pytest.fixture
def sample_reading(sample):
    """The reading built from the typical sample."""
    return Reading.from_sample(sample, "test-room")


@pytest.fixture
def mock_reader(sample):
    """Create a mock sensor reader returning the typical sample."""
    reader = MagicMock()
    reader.open = MagicMock()
    reader.init = MagicMock()
    reader.read = MagicMock(return_value=sample)
    reader.close = MagicMock()
    return reader


@pytest.fixture
def mock_notifier():
    """Create a mock notifier that always delivers."""
    notifier = MagicMock()
    notifier.notify = AsyncMock(return_value=True)
    return notifier

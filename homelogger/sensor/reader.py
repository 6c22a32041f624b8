"""BME280 access over I2C.

The bus is opened once and kept for the life of the process. The driver
session on top of it is rebuilt and re-initialized on every cycle, so a
sensor that was reset or glitched between samples does not leave stale
calibration state behind.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

from homelogger.lib.exceptions import SensorError, SensorOpenError
from homelogger.logging import get_logger
from homelogger.sensor.models import Sample

if TYPE_CHECKING:
    from smbus2 import SMBus

logger = get_logger("sensor.reader")


class SensorReaderProtocol(Protocol):
    """Protocol for the sensor reader used by the polling loop."""

    def open(self) -> None: ...

    def init(self) -> None: ...

    def read(self) -> Sample: ...

    def close(self) -> None: ...


class BME280Reader:
    """Read temperature, pressure, and humidity from a BME280."""

    def __init__(self, device_path: str, address: int) -> None:
        self.device_path = device_path
        self.address = address
        self._bus: SMBus | None = None
        self._driver: Any = None

    def open(self) -> None:
        """Open the I2C bus."""
        try:
            from smbus2 import SMBus

            self._bus = SMBus(self.device_path)
        except (ImportError, OSError, ValueError) as e:
            raise SensorOpenError(
                f"Could not open {self.device_path}: {e}"
            ) from e
        logger.info(
            "Opened BME280 on %s at address 0x%02x", self.device_path, self.address
        )

    def init(self) -> None:
        """Start a fresh driver session on the open bus."""
        if self._bus is None:
            raise SensorError("Sensor bus is not open")
        try:
            from bme280 import BME280

            self._driver = BME280(i2c_addr=self.address, i2c_dev=self._bus)
            self._driver.setup()
        except (ImportError, OSError, RuntimeError) as e:
            self._driver = None
            raise SensorError(f"BME280 init failed: {e}") from e

    def read(self) -> Sample:
        """Sample the sensor. init() must have succeeded this cycle."""
        if self._driver is None:
            raise SensorError("BME280 session is not initialized")
        try:
            return Sample(
                temperature=self._driver.get_temperature(),
                pressure=self._driver.get_pressure(),
                humidity=self._driver.get_humidity(),
            )
        except (OSError, RuntimeError) as e:
            raise SensorError(f"BME280 read failed: {e}") from e

    def close(self) -> None:
        if self._bus is not None:
            self._bus.close()
            self._bus = None
        self._driver = None

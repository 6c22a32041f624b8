"""Mock sensor for development.

Provides a mock implementation of the sensor reader that generates
realistic data without requiring hardware. Used by the polling service
when MOCK_SENSORS=1 is set.
"""

import random

from homelogger.lib.exceptions import SensorError
from homelogger.sensor.models import Sample


def _random_walk(
    current: float, drift: float, min_val: float, max_val: float
) -> float:
    """Generate next value using random walk with bounds."""
    change = random.gauss(0, drift)
    new_val = current + change
    return max(min_val, min(max_val, new_val))


class MockBME280Reader:
    """Mock BME280 reader that generates realistic readings.

    - Temperature: drift=0.15, bounds 15-30
    - Pressure: drift=0.5, bounds 980-1040
    - Humidity: drift=0.3, bounds 30-70
    """

    def __init__(self) -> None:
        self._temperature = random.uniform(20.0, 23.0)
        self._pressure = random.uniform(1005.0, 1020.0)
        self._humidity = random.uniform(45.0, 55.0)
        self._open = False

    def open(self) -> None:
        self._open = True

    def init(self) -> None:
        if not self._open:
            raise SensorError("Mock sensor is not open")

    def read(self) -> Sample:
        self._temperature = _random_walk(
            self._temperature, drift=0.15, min_val=15.0, max_val=30.0
        )
        self._pressure = _random_walk(
            self._pressure, drift=0.5, min_val=980.0, max_val=1040.0
        )
        self._humidity = _random_walk(
            self._humidity, drift=0.3, min_val=30.0, max_val=70.0
        )
        return Sample(self._temperature, self._pressure, self._humidity)

    def close(self) -> None:
        self._open = False

"""Domain models for BME280 sensor readings."""

from dataclasses import dataclass
from typing import Self

from homelogger.lib.config import MEASURE_UNITS, MeasureName

DISPLAY_PRECISION = 2
RAW_PRECISION = 5


def _fmt(value: float, precision: int) -> str:
    return f"{value:.{precision}f}"


@dataclass(frozen=True, slots=True)
class Sample:
    """Values as returned by the sensor driver."""

    temperature: float
    pressure: float
    humidity: float

    @classmethod
    def empty(cls) -> Self:
        return cls(0.0, 0.0, 0.0)

    def __str__(self) -> str:
        return ", ".join(
            f"{name.capitalize()}: {getattr(self, name)}{MEASURE_UNITS[name]}"
            for name in MeasureName
        )


@dataclass(frozen=True, slots=True)
class Reading:
    """One row of the sensor_data table.

    Display values carry 2 decimals and raw values 5, both as text.
    """

    device_name: str
    temperature: str
    humidity: str
    pressure: str
    raw_temperature: str
    raw_humidity: str
    raw_pressure: str

    @classmethod
    def from_sample(cls, sample: Sample, device_name: str) -> Self:
        return cls(
            device_name=device_name,
            temperature=_fmt(sample.temperature, DISPLAY_PRECISION),
            humidity=_fmt(sample.humidity, DISPLAY_PRECISION),
            pressure=_fmt(sample.pressure, DISPLAY_PRECISION),
            raw_temperature=_fmt(sample.temperature, RAW_PRECISION),
            raw_humidity=_fmt(sample.humidity, RAW_PRECISION),
            raw_pressure=_fmt(sample.pressure, RAW_PRECISION),
        )

    def as_params(self) -> tuple[str, ...]:
        """Return the values in sensor_data column order."""
        return (
            self.temperature,
            self.humidity,
            self.pressure,
            self.raw_temperature,
            self.raw_humidity,
            self.raw_pressure,
            self.device_name,
        )

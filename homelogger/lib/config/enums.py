"""Enumerations for the homelogger application."""

from enum import StrEnum


class NotificationBackend(StrEnum):
    WEBHOOK = "webhook"
    PUSH = "push"


class Unit(StrEnum):
    """Measurement units for sensor readings."""

    CELSIUS = "°C"
    HECTOPASCAL = "hPa"
    PERCENT = "%"


class MeasureName(StrEnum):
    TEMPERATURE = "temperature"
    PRESSURE = "pressure"
    HUMIDITY = "humidity"


MEASURE_UNITS: dict[MeasureName, Unit] = {
    MeasureName.TEMPERATURE: Unit.CELSIUS,
    MeasureName.PRESSURE: Unit.HECTOPASCAL,
    MeasureName.HUMIDITY: Unit.PERCENT,
}

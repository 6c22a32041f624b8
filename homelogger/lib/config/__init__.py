"""Centralized configuration for the homelogger application.

This package provides:
- Enums for measures, units, and notification backends
- Pydantic settings models for configuration
"""

from .enums import MEASURE_UNITS, MeasureName, NotificationBackend, Unit
from .settings import (
    NotificationSettings,
    PollingSettings,
    PushSettings,
    SensorSettings,
    Settings,
    StoreSettings,
    WebhookSettings,
    get_settings,
)

__all__ = [
    # Enums
    "MeasureName",
    "NotificationBackend",
    "Unit",
    # Settings models
    "NotificationSettings",
    "PollingSettings",
    "PushSettings",
    "SensorSettings",
    "Settings",
    "StoreSettings",
    "WebhookSettings",
    # Constants
    "MEASURE_UNITS",
    # Functions
    "get_settings",
]

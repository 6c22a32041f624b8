"""Custom exceptions for the homelogger application.

Provides a hierarchy of domain-specific exceptions so the polling loop can
tell fatal bootstrap failures apart from recoverable per-cycle ones.
"""


class HomeLoggerError(Exception):
    """Base exception for all application errors."""


class DatabaseError(HomeLoggerError):
    """Base exception for database-related errors."""


class DatabaseNotConnectedError(DatabaseError):
    """Raised when attempting database operations without a connection."""

    def __init__(self, message: str = "Database not connected") -> None:
        super().__init__(message)


class StoreConnectError(DatabaseError):
    """Raised when the store cannot be opened or fails its first ping."""


class StoreInsertError(DatabaseError):
    """Raised when a reading could not be inserted."""


class SensorError(HomeLoggerError):
    """Raised when the sensor session cannot be initialized or sampled."""


class SensorOpenError(SensorError):
    """Raised when the sensor bus cannot be opened."""


class NotificationError(HomeLoggerError):
    """Raised by transports for unusable notification responses."""


class BootstrapError(HomeLoggerError):
    """Raised when a polling service cannot start."""

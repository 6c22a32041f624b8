"""Settings models and configuration loading for the homelogger application."""

from functools import cached_property, lru_cache
from typing import Annotated, Any, Self

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    HttpUrl,
    SecretStr,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

from homelogger.lib.config.enums import NotificationBackend

# Go-style "0 means unbounded" for the pool connection lifetime
_UNBOUNDED_LIFETIME = 0.0

_DEFAULT_PUSH_API_URL = "https://notify-api.line.me/api/notify"


def _parse_bool(v: Any) -> bool:
    """Parse boolean from string '1'/'0' or actual bool."""
    if isinstance(v, bool):
        return v
    if isinstance(v, str):
        return v == "1"
    return bool(v)


def _parse_hex_int(v: Any) -> int:
    """Parse integer from string, supporting hex format (0x...)."""
    if isinstance(v, int):
        return v
    if isinstance(v, str):
        return int(v, 0)  # base 0 auto-detects hex/octal/decimal
    return int(v)


def _validate_http_url_or_empty(v: str) -> str:
    """Validate HTTP URL format, allowing empty string."""
    if not v:
        return v
    HttpUrl(v)
    return v


_BoolFromStr = Annotated[bool, BeforeValidator(_parse_bool)]
_HexInt = Annotated[int, BeforeValidator(_parse_hex_int)]
_HttpUrlOrEmpty = Annotated[str, AfterValidator(_validate_http_url_or_empty)]


class StoreSettings(BaseModel):
    """Relational store settings."""

    model_config = ConfigDict(frozen=True)

    dsn: str = "homelogger.sqlite3"
    timeout_sec: float = 5.0
    max_open_conns: int = 4
    max_idle_conns: int = 2
    conn_max_lifetime_sec: float | None = None  # None is unbounded


class WebhookSettings(BaseModel):
    """Generic webhook notification settings."""

    model_config = ConfigDict(frozen=True)

    url: _HttpUrlOrEmpty = ""
    max_length: int = 2000


class PushSettings(BaseModel):
    """Token-authenticated push API notification settings."""

    model_config = ConfigDict(frozen=True)

    url: _HttpUrlOrEmpty = _DEFAULT_PUSH_API_URL
    token: SecretStr = SecretStr("")


class NotificationSettings(BaseModel):
    """Notification settings."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    backend: NotificationBackend = NotificationBackend.WEBHOOK
    sender: str = "homelogger"
    timeout_sec: float = 10.0
    webhook: WebhookSettings = WebhookSettings()
    push: PushSettings = PushSettings()


class SensorSettings(BaseModel):
    """BME280 sensor settings."""

    model_config = ConfigDict(frozen=True)

    device_path: str = "/dev/i2c-1"
    address: int = 0x76
    device_name: str = "somewhere"


class PollingSettings(BaseModel):
    """Polling service settings."""

    model_config = ConfigDict(frozen=True)

    frequency_sec: int = 300


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Polling
    poll_interval_sec: int = Field(default=300, gt=0)
    debug_log: _BoolFromStr = False

    # Database
    db_dsn: str = "homelogger.sqlite3"
    db_timeout_sec: float = Field(default=5.0, gt=0)
    db_max_open_conns: int = Field(default=4, ge=1)
    db_max_idle_conns: int = Field(default=2, ge=0)
    db_conn_max_lifetime_sec: float = Field(default=_UNBOUNDED_LIFETIME, ge=0)

    # Sensor
    mock_sensors: _BoolFromStr = False
    i2c_device: str = "/dev/i2c-1"
    bme280_address: _HexInt = Field(default=0x76, ge=0x00, le=0x7F)
    device_name: str = "somewhere"

    # Notifications
    enable_notifications: _BoolFromStr = False
    notification_backend: NotificationBackend = NotificationBackend.WEBHOOK
    notification_sender: str = "homelogger"
    notification_timeout_sec: float = Field(default=10.0, gt=0)
    webhook_url: _HttpUrlOrEmpty = ""
    webhook_max_length: int = Field(default=2000, gt=0)
    push_api_url: _HttpUrlOrEmpty = _DEFAULT_PUSH_API_URL
    push_api_token: SecretStr = SecretStr("")

    @cached_property
    def store(self) -> StoreSettings:
        """Get store settings as nested object."""
        lifetime = self.db_conn_max_lifetime_sec
        return StoreSettings(
            dsn=self.db_dsn,
            timeout_sec=self.db_timeout_sec,
            max_open_conns=self.db_max_open_conns,
            max_idle_conns=self.db_max_idle_conns,
            conn_max_lifetime_sec=(
                None if lifetime == _UNBOUNDED_LIFETIME else lifetime
            ),
        )

    @cached_property
    def notifications(self) -> NotificationSettings:
        """Get notification settings as nested object."""
        return NotificationSettings(
            enabled=self.enable_notifications,
            backend=self.notification_backend,
            sender=self.notification_sender,
            timeout_sec=self.notification_timeout_sec,
            webhook=WebhookSettings(
                url=self.webhook_url, max_length=self.webhook_max_length
            ),
            push=PushSettings(
                url=self.push_api_url, token=self.push_api_token
            ),
        )

    @cached_property
    def sensor(self) -> SensorSettings:
        """Get sensor settings as nested object."""
        return SensorSettings(
            device_path=self.i2c_device,
            address=self.bme280_address,
            device_name=self.device_name,
        )

    @cached_property
    def polling(self) -> PollingSettings:
        """Get polling settings."""
        return PollingSettings(frequency_sec=self.poll_interval_sec)

    @model_validator(mode="after")
    def validate_settings(self) -> Self:
        """Validate cross-field configuration constraints."""
        errors: list[str] = []

        if self.db_max_idle_conns > self.db_max_open_conns:
            errors.append(
                f"DB_MAX_IDLE_CONNS ({self.db_max_idle_conns}) must not exceed "
                f"DB_MAX_OPEN_CONNS ({self.db_max_open_conns})"
            )

        if self.enable_notifications:
            if (
                self.notification_backend == NotificationBackend.WEBHOOK
                and not self.webhook_url
            ):
                errors.append("Webhook enabled but WEBHOOK_URL is not set")

            if self.notification_backend == NotificationBackend.PUSH:
                missing = []
                if not self.push_api_url:
                    missing.append("PUSH_API_URL")
                if not self.push_api_token.get_secret_value():
                    missing.append("PUSH_API_TOKEN")
                if missing:
                    errors.append(
                        f"Push API enabled but missing: {', '.join(missing)}"
                    )

        if errors:
            raise ValueError(
                "Configuration validation failed:\n  - "
                + "\n  - ".join(errors)
            )

        return self


# Settings override for testing - allows injecting custom Settings without
# modifying environment variables or clearing the lru_cache.
_settings_override: Settings | None = None


@lru_cache(maxsize=1)
def _load_settings() -> Settings:
    """Load settings from environment (cached)."""
    return Settings()


def get_settings() -> Settings:
    """Get the global settings instance.

    Returns the test override if set, otherwise loads from environment
    variables (cached after first load). For testing, use set_settings()
    from homelogger.lib.config.testing to override.
    """
    if _settings_override is not None:
        return _settings_override
    return _load_settings()

"""Operator notifications for collector failures.

One Notifier posts short text alerts through a pluggable transport:

- webhook: JSON ``content``/``username`` body, success on HTTP 200 or 204
- push: form-encoded ``message`` with a bearer token, success when the JSON
  response carries ``"status": 200``

Delivery is best effort. Failures are logged here and never raised or
re-notified, so callers always get a boolean back.
"""

import asyncio
import http.client
import json
import urllib.error
import urllib.parse
import urllib.request
from abc import ABC, abstractmethod
from collections.abc import Callable
from http import HTTPStatus
from typing_extensions import override

from homelogger.lib.config import (
    NotificationBackend,
    NotificationSettings,
    get_settings,
)
from homelogger.lib.exceptions import NotificationError
from homelogger.logging import get_logger

logger = get_logger("lib.notifications")

# Errors a delivery attempt may end with; all of them mean "not delivered"
_DELIVERY_ERRORS: tuple[type[Exception], ...] = (
    OSError,
    http.client.HTTPException,
    ValueError,
    NotificationError,
)


class AbstractTransport(ABC):
    """How a message is shaped for, and judged by, one kind of endpoint."""

    name: str

    @abstractmethod
    def build_request(self, sender: str, message: str) -> urllib.request.Request:
        """Build the HTTP request carrying the message."""

    @abstractmethod
    def is_delivered(self, status: int, body: bytes) -> bool:
        """Decide from the response whether the message was accepted."""


class WebhookTransport(AbstractTransport):
    """Generic chat webhook (Discord-style)."""

    name = "webhook"
    success_statuses = frozenset({HTTPStatus.OK, HTTPStatus.NO_CONTENT})

    def __init__(self, url: str, max_length: int = 2000) -> None:
        self._url = url
        self._max_length = max_length

    @override
    def build_request(self, sender: str, message: str) -> urllib.request.Request:
        payload = {
            "content": message[: self._max_length],
            "username": sender,
        }
        return urllib.request.Request(
            self._url,
            data=json.dumps(payload).encode("utf-8"),
            headers={"Content-Type": "application/json"},
            method="POST",
        )

    @override
    def is_delivered(self, status: int, body: bytes) -> bool:
        return status in self.success_statuses


class PushTransport(AbstractTransport):
    """Token-authenticated push message API (LINE Notify-style)."""

    name = "push"

    def __init__(self, url: str, token: str) -> None:
        self._url = url
        self._token = token

    @override
    def build_request(self, sender: str, message: str) -> urllib.request.Request:
        data = urllib.parse.urlencode({"message": f"[{sender}] {message}"})
        return urllib.request.Request(
            self._url,
            data=data.encode("utf-8"),
            headers={
                "Content-Type": "application/x-www-form-urlencoded",
                "Authorization": f"Bearer {self._token}",
            },
            method="POST",
        )

    @override
    def is_delivered(self, status: int, body: bytes) -> bool:
        try:
            payload = json.loads(body)
        except ValueError as e:
            raise NotificationError(f"Unreadable push API response: {e}") from e
        if not isinstance(payload, dict):
            raise NotificationError(f"Unexpected push API response: {payload!r}")
        return payload.get("status") == HTTPStatus.OK


class AbstractNotifier(ABC):
    """Abstract base class for notifiers."""

    enabled = True

    @abstractmethod
    async def notify(self, sender: str, message: str) -> bool:
        """Send a message, returning True if it was delivered."""


class Notifier(AbstractNotifier):
    """Deliver messages through a transport with a bounded timeout."""

    def __init__(self, transport: AbstractTransport, *, timeout_sec: float) -> None:
        self._transport = transport
        self._timeout_sec = timeout_sec

    @property
    def transport(self) -> AbstractTransport:
        return self._transport

    def _post(self, request: urllib.request.Request) -> tuple[int, bytes]:
        try:
            with urllib.request.urlopen(request, timeout=self._timeout_sec) as resp:
                return resp.status, resp.read()
        except urllib.error.HTTPError as e:
            # Non-2xx responses still carry a status worth judging
            return e.code, e.read()

    @override
    async def notify(self, sender: str, message: str) -> bool:
        name = self._transport.name
        try:
            request = self._transport.build_request(sender, message)
            status, body = await asyncio.to_thread(self._post, request)
            delivered = self._transport.is_delivered(status, body)
        except _DELIVERY_ERRORS as e:
            logger.error("Error %r when sending %s notification", e, name)
            return False

        if not delivered:
            logger.error(
                "%s notification not delivered, server returned %d: %s",
                name.capitalize(),
                status,
                body.decode("utf-8", errors="replace"),
            )
            return False

        logger.info("Sent %s notification (status %d)", name, status)
        return True


class NoOpNotifier(AbstractNotifier):
    """No-op notifier that logs but doesn't send notifications."""

    enabled = False

    @override
    async def notify(self, sender: str, message: str) -> bool:
        logger.info("Notifications disabled, skipping: %s", message)
        return False


_TRANSPORTS: dict[
    NotificationBackend, Callable[[NotificationSettings], AbstractTransport]
] = {
    NotificationBackend.WEBHOOK: lambda cfg: WebhookTransport(
        cfg.webhook.url, cfg.webhook.max_length
    ),
    NotificationBackend.PUSH: lambda cfg: PushTransport(
        cfg.push.url, cfg.push.token.get_secret_value()
    ),
}


def get_notifier() -> AbstractNotifier:
    """Factory function to get the configured notifier."""
    cfg = get_settings().notifications
    if not cfg.enabled:
        logger.info("Notifications disabled, failures will only be logged")
        return NoOpNotifier()
    transport = _TRANSPORTS[cfg.backend](cfg)
    return Notifier(transport, timeout_sec=cfg.timeout_sec)

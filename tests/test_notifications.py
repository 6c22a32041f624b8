"""Tests for the notification system."""
import io
import json
import urllib.error
import urllib.parse
from unittest.mock import MagicMock, patch

import pytest

from homelogger.lib.config import Settings
from homelogger.lib.config.testing import set_settings
from homelogger.lib.notifications import (
    NoOpNotifier,
    Notifier,
    PushTransport,
    WebhookTransport,
    get_notifier,
)

WEBHOOK_URL = "https://discord.example.com/api/webhooks/1/abc"
PUSH_URL = "https://notify.example.com/api/notify"


def make_response(status=200, body=b""):
    """Create a urlopen() context manager returning the given response."""
    resp = MagicMock()
    resp.status = status
    resp.read.return_value = body
    cm = MagicMock()
    cm.__enter__.return_value = resp
    cm.__exit__.return_value = False
    return cm


def make_http_error(status, body=b""):
    return urllib.error.HTTPError(
        WEBHOOK_URL, status, "error", hdrs=None, fp=io.BytesIO(body)
    )


class TestWebhookTransport:
    """Tests for the generic webhook payload."""

    def test_payload_shape(self):
        request = WebhookTransport(WEBHOOK_URL).build_request(
            "homelogger", "Insert failed"
        )

        assert request.full_url == WEBHOOK_URL
        assert request.get_method() == "POST"
        assert request.get_header("Content-type") == "application/json"
        assert json.loads(request.data) == {
            "content": "Insert failed",
            "username": "homelogger",
        }

    def test_long_message_truncated(self):
        request = WebhookTransport(WEBHOOK_URL).build_request("h", "x" * 5000)

        assert len(json.loads(request.data)["content"]) == 2000

    def test_configured_length_limit(self):
        request = WebhookTransport(WEBHOOK_URL, max_length=100).build_request(
            "h", "x" * 5000
        )

        assert len(json.loads(request.data)["content"]) == 100

    @pytest.mark.parametrize(
        ("status", "expected"),
        [(200, True), (204, True), (201, False), (400, False), (500, False)],
    )
    def test_success_statuses(self, status, expected):
        assert WebhookTransport(WEBHOOK_URL).is_delivered(status, b"") is expected


class TestPushTransport:
    """Tests for the token-authenticated push payload."""

    def test_payload_shape(self):
        request = PushTransport(PUSH_URL, "secret-token").build_request(
            "homelogger", "Insert failed"
        )

        assert request.get_method() == "POST"
        assert request.get_header("Authorization") == "Bearer secret-token"
        assert (
            request.get_header("Content-type")
            == "application/x-www-form-urlencoded"
        )
        form = urllib.parse.parse_qs(request.data.decode())
        assert form == {"message": ["[homelogger] Insert failed"]}

    def test_status_field_ok(self):
        body = json.dumps({"status": 200, "message": "ok"}).encode()
        assert PushTransport(PUSH_URL, "t").is_delivered(200, body) is True

    def test_status_field_not_ok(self):
        body = json.dumps({"status": 401, "message": "Invalid token"}).encode()
        assert PushTransport(PUSH_URL, "t").is_delivered(200, body) is False


class TestNotifier:
    """Tests for delivering through a transport."""

    @pytest.fixture
    def webhook(self):
        return Notifier(WebhookTransport(WEBHOOK_URL), timeout_sec=3)

    @pytest.fixture
    def push(self):
        return Notifier(PushTransport(PUSH_URL, "token"), timeout_sec=3)

    @patch("homelogger.lib.notifications.urllib.request.urlopen")
    async def test_webhook_no_content_delivered(self, mock_urlopen, webhook):
        mock_urlopen.return_value = make_response(204)

        assert await webhook.notify("homelogger", "hello") is True

        request = mock_urlopen.call_args[0][0]
        assert request.full_url == WEBHOOK_URL
        assert mock_urlopen.call_args.kwargs["timeout"] == 3

    @patch("homelogger.lib.notifications.urllib.request.urlopen")
    async def test_webhook_http_error_not_delivered(
        self, mock_urlopen, webhook, caplog
    ):
        mock_urlopen.side_effect = make_http_error(500, b"server exploded")

        assert await webhook.notify("homelogger", "hello") is False
        assert "server exploded" in caplog.text

    @patch("homelogger.lib.notifications.urllib.request.urlopen")
    async def test_unexpected_success_status_not_delivered(
        self, mock_urlopen, webhook
    ):
        mock_urlopen.return_value = make_response(201)

        assert await webhook.notify("homelogger", "hello") is False

    @pytest.mark.parametrize(
        "error",
        [
            urllib.error.URLError("connection refused"),
            TimeoutError("timed out"),
            ConnectionResetError("reset"),
        ],
    )
    @patch("homelogger.lib.notifications.urllib.request.urlopen")
    async def test_transport_errors_not_delivered(
        self, mock_urlopen, webhook, error
    ):
        mock_urlopen.side_effect = error

        assert await webhook.notify("homelogger", "hello") is False

    @patch("homelogger.lib.notifications.urllib.request.urlopen")
    async def test_push_delivered(self, mock_urlopen, push):
        mock_urlopen.return_value = make_response(
            200, b'{"status": 200, "message": "ok"}'
        )

        assert await push.notify("homelogger", "hello") is True

    @patch("homelogger.lib.notifications.urllib.request.urlopen")
    async def test_push_unauthorized(self, mock_urlopen, push):
        mock_urlopen.side_effect = make_http_error(
            401, b'{"status": 401, "message": "Invalid access token"}'
        )

        assert await push.notify("homelogger", "hello") is False

    @pytest.mark.parametrize("body", [b"not json", b"[200]", b""])
    @patch("homelogger.lib.notifications.urllib.request.urlopen")
    async def test_push_malformed_response(self, mock_urlopen, push, body):
        mock_urlopen.return_value = make_response(200, body)

        assert await push.notify("homelogger", "hello") is False

    @patch("homelogger.lib.notifications.urllib.request.urlopen")
    async def test_no_retry(self, mock_urlopen, webhook):
        mock_urlopen.side_effect = urllib.error.URLError("down")

        await webhook.notify("homelogger", "hello")

        assert mock_urlopen.call_count == 1


class TestNoOpNotifier:
    """Tests for the disabled notifier."""

    async def test_reports_not_delivered(self, caplog):
        assert await NoOpNotifier().notify("homelogger", "hello") is False
        assert "Notifications disabled" in caplog.text

    def test_marked_disabled(self):
        assert NoOpNotifier().enabled is False
        assert Notifier(WebhookTransport(WEBHOOK_URL), timeout_sec=1).enabled


class TestGetNotifier:
    """Tests for the notifier factory."""

    def test_disabled_returns_noop(self):
        set_settings(Settings(enable_notifications=False))

        assert isinstance(get_notifier(), NoOpNotifier)

    def test_webhook_backend(self):
        set_settings(
            Settings(
                enable_notifications=True,
                notification_backend="webhook",
                webhook_url=WEBHOOK_URL,
                notification_timeout_sec=7,
            )
        )

        notifier = get_notifier()

        assert isinstance(notifier, Notifier)
        assert isinstance(notifier.transport, WebhookTransport)

    def test_webhook_length_from_settings(self):
        set_settings(
            Settings(
                enable_notifications=True,
                webhook_url=WEBHOOK_URL,
                webhook_max_length=500,
            )
        )
        request = get_notifier().transport.build_request("h", "x" * 5000)

        assert len(json.loads(request.data)["content"]) == 500

    def test_push_backend(self):
        set_settings(
            Settings(
                enable_notifications=True,
                notification_backend="push",
                push_api_token="token",
            )
        )

        notifier = get_notifier()

        assert isinstance(notifier, Notifier)
        assert isinstance(notifier.transport, PushTransport)

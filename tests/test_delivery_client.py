"""Unit tests for the webhook delivery client."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from hookrelay.models import Failure, NotificationPayload, Success, WebhookTarget
from hookrelay.webhooks import DeliveryClient


@pytest.fixture
def target() -> WebhookTarget:
    return WebhookTarget(id="whk_test123", url="https://example.com/webhook")


@pytest.fixture
def fixed_payload() -> NotificationPayload:
    return NotificationPayload(
        source_address="198.51.100.4",
        issued_at=datetime(2024, 1, 2, 3, 4, 5, 678000, tzinfo=UTC),
    )


def mock_http(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestDeliver:
    """Tests for DeliveryClient.deliver()."""

    @pytest.mark.asyncio
    async def test_posts_json_body_to_target_url(
        self, target: WebhookTarget, fixed_payload: NotificationPayload
    ) -> None:
        """deliver should POST ipAddress and a millisecond timestamp."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, text="OK")

        async with mock_http(handler) as http:
            outcome = await DeliveryClient(http).deliver(target, fixed_payload, timeout=5.0)

        assert outcome == Success(status_code=200)
        assert len(seen) == 1
        request = seen[0]
        assert request.method == "POST"
        assert str(request.url) == "https://example.com/webhook"
        assert request.headers["Content-Type"] == "application/json"
        assert request.headers["X-Hookrelay-Target-Id"] == "whk_test123"
        assert json.loads(request.content) == {
            "ipAddress": "198.51.100.4",
            "timestamp": 1704164645678,
        }

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [201, 204, 302, 404, 500, 503, 600, 799, 999])
    async def test_any_response_is_reported_as_success_with_its_status(
        self, target: WebhookTarget, fixed_payload: NotificationPayload, status_code: int
    ) -> None:
        """The client does not judge status codes; it only reports them."""
        async with mock_http(lambda request: httpx.Response(status_code)) as http:
            outcome = await DeliveryClient(http).deliver(target, fixed_payload)

        assert isinstance(outcome, Success)
        assert outcome.status_code == status_code

    @pytest.mark.asyncio
    async def test_timeout_is_failure_timeout(
        self, target: WebhookTarget, fixed_payload: NotificationPayload
    ) -> None:
        """Timeouts map to Failure(timeout)."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        async with mock_http(handler) as http:
            outcome = await DeliveryClient(http).deliver(target, fixed_payload)

        assert isinstance(outcome, Failure)
        assert outcome.reason == "timeout"

    @pytest.mark.asyncio
    async def test_connection_refused_is_connection_error(
        self, target: WebhookTarget, fixed_payload: NotificationPayload
    ) -> None:
        """Connect errors map to Failure(connection_error)."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("Connection refused", request=request)

        async with mock_http(handler) as http:
            outcome = await DeliveryClient(http).deliver(target, fixed_payload)

        assert isinstance(outcome, Failure)
        assert outcome.reason == "connection_error"
        assert "Connection refused" in (outcome.detail or "")

    @pytest.mark.asyncio
    async def test_other_transport_error_is_other(
        self, target: WebhookTarget, fixed_payload: NotificationPayload
    ) -> None:
        """Other request errors map to Failure(other)."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.RemoteProtocolError("Server disconnected", request=request)

        async with mock_http(handler) as http:
            outcome = await DeliveryClient(http).deliver(target, fixed_payload)

        assert isinstance(outcome, Failure)
        assert outcome.reason == "other"

    @pytest.mark.asyncio
    async def test_unexpected_error_is_other(
        self, target: WebhookTarget, fixed_payload: NotificationPayload
    ) -> None:
        """Errors outside httpx's hierarchy never escape the client."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise ValueError("Unexpected error")

        async with mock_http(handler) as http:
            outcome = await DeliveryClient(http).deliver(target, fixed_payload)

        assert isinstance(outcome, Failure)
        assert outcome.reason == "other"
        assert "Unexpected error" in (outcome.detail or "")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("url", ["localhost:3000/test1", ""])
    async def test_malformed_url_is_other(
        self, fixed_payload: NotificationPayload, url: str
    ) -> None:
        """URLs without a usable scheme fail without a network call."""
        target = WebhookTarget(id="whk_bad", url=url)

        outcome = await DeliveryClient().deliver(target, fixed_payload, timeout=1.0)

        assert isinstance(outcome, Failure)
        assert outcome.reason == "other"


class TestPerCallClient:
    """Without a shared client, a short-lived AsyncClient is opened per call."""

    @pytest.mark.asyncio
    async def test_opens_client_with_timeout(
        self, target: WebhookTarget, fixed_payload: NotificationPayload
    ) -> None:
        """A fresh httpx.AsyncClient is created with the call timeout."""
        with patch("httpx.AsyncClient") as mock_client_class:
            mock_response = MagicMock()
            mock_response.status_code = 200

            mock_client = AsyncMock()
            mock_client.post = AsyncMock(return_value=mock_response)
            mock_client.__aenter__ = AsyncMock(return_value=mock_client)
            mock_client.__aexit__ = AsyncMock(return_value=None)
            mock_client_class.return_value = mock_client

            outcome = await DeliveryClient().deliver(target, fixed_payload, timeout=7.5)

        assert outcome == Success(status_code=200)
        mock_client_class.assert_called_once_with(timeout=7.5)
        post_call = mock_client.post.call_args
        assert post_call.args[0] == "https://example.com/webhook"
        assert post_call.kwargs["json"] == fixed_payload.to_body()

    @pytest.mark.asyncio
    async def test_timeout_exception_from_fresh_client(
        self, target: WebhookTarget, fixed_payload: NotificationPayload
    ) -> None:
        """Timeouts raised by the per-call client are reported, not raised."""
        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client = AsyncMock()
            mock_client.post = AsyncMock(side_effect=httpx.TimeoutException("timeout"))
            mock_client.__aenter__ = AsyncMock(return_value=mock_client)
            mock_client.__aexit__ = AsyncMock(return_value=None)
            mock_client_class.return_value = mock_client

            outcome = await DeliveryClient().deliver(target, fixed_payload)

        assert outcome == Failure(reason="timeout", detail="timeout")

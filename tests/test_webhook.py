"""Tests for webhook delivery."""

from __future__ import annotations

import json

import httpx
import pytest

from delay_sentinel.domain.enums import AlertType, ConditionType, Severity
from delay_sentinel.domain.violation import Violation
from delay_sentinel.models.payload import AlertPayload, LocationPayload
from delay_sentinel.notify.webhook import LoggingSink, WebhookDeliveryError, WebhookSink

_URL = "https://hooks.example.test/delays"


def _payload() -> AlertPayload:
    return AlertPayload(
        site_id="site-1",
        site_name="Project site-1",
        alert_type=AlertType.NEW_DELAY,
        severity=Severity.MEDIUM,
        message="Weather delay detected at Project site-1. wind_speed: 45.0mph (threshold: 30mph)",
        location=LocationPayload(address="1 Main St", lat=39.7817, lng=-89.6501),
        violations=[Violation(condition=ConditionType.WIND_SPEED, value=45.0, threshold=30.0, unit="mph")],
        timestamp="2026-03-02T07:00:00+00:00",
    )


def _sink(handler, auth_token: str | None = None) -> WebhookSink:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return WebhookSink(_URL, auth_token=auth_token, http_client=client)


class TestWebhookSink:
    @pytest.mark.asyncio
    async def test_posts_json_payload(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200)

        await _sink(handler).send(_payload())

        [request] = seen
        assert request.method == "POST"
        assert str(request.url) == _URL
        assert "authorization" not in request.headers
        body = json.loads(request.content)
        assert body["alert_type"] == "new-delay"
        assert body["violations"][0] == {
            "condition": "wind_speed",
            "value": 45.0,
            "threshold": 30.0,
            "unit": "mph",
        }

    @pytest.mark.asyncio
    async def test_bearer_token_sent(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(204)

        await _sink(handler, auth_token="s3cret").send(_payload())
        assert seen[0].headers["authorization"] == "Bearer s3cret"

    @pytest.mark.asyncio
    async def test_error_status_raises(self) -> None:
        sink = _sink(lambda request: httpx.Response(500))
        with pytest.raises(WebhookDeliveryError, match="HTTP 500"):
            await sink.send(_payload())

    @pytest.mark.asyncio
    async def test_connection_failure_raises(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(WebhookDeliveryError) as info:
            await _sink(handler).send(_payload())
        assert info.value.url == _URL


class TestLoggingSink:
    @pytest.mark.asyncio
    async def test_logs_message(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level("INFO", logger="delay_sentinel.notify.webhook")
        await LoggingSink().send(_payload())
        assert "[new-delay/medium] Weather delay detected" in caplog.text

"""Notification sinks — deliver alert payloads to the outside world.

WebhookSink POSTs the payload as JSON (optionally with a bearer token) to
an automation endpoint that fans it out to email, SMS or chat.  Retrying
is that system's job; a failed POST raises WebhookDeliveryError once and
the dispatcher logs it.

LoggingSink is used when no webhook is configured.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from delay_sentinel.models.payload import AlertPayload

logger = logging.getLogger(__name__)


class WebhookDeliveryError(Exception):
    """The webhook endpoint could not be reached or refused the payload."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Webhook delivery to {url} failed: {reason}")


class WebhookSink:
    """POSTs each AlertPayload to a webhook URL.

    Args:
        url: Webhook endpoint.
        auth_token: Optional bearer token sent in the Authorization header.
        timeout: Per-request timeout in seconds.
        http_client: Optional pre-built httpx.AsyncClient (owned by caller).
    """

    def __init__(
        self,
        url: str,
        auth_token: str | None = None,
        timeout: float = 5.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._url = url
        self._headers = {"Content-Type": "application/json"}
        if auth_token:
            self._headers["Authorization"] = f"Bearer {auth_token}"
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))

    async def send(self, payload: AlertPayload) -> None:
        body = payload.model_dump(mode="json")
        try:
            response = await self._http.post(self._url, json=body, headers=self._headers)
        except httpx.HTTPError as exc:
            raise WebhookDeliveryError(self._url, f"{type(exc).__name__}: {exc}") from exc
        if response.status_code >= 400:
            raise WebhookDeliveryError(self._url, f"HTTP {response.status_code}")
        logger.debug("Delivered %s alert for site %s", payload.alert_type.value, payload.site_id)

    async def close(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def __aenter__(self) -> WebhookSink:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()


class LoggingSink:
    """Writes each payload summary to the log instead of delivering it."""

    async def send(self, payload: AlertPayload) -> None:
        logger.info(
            "[%s/%s] %s",
            payload.alert_type.value,
            payload.severity.value,
            payload.message,
        )

    async def close(self) -> None:
        return None

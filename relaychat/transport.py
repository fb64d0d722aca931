"""
Webhook Transport

Sends one user turn to the remote agent webhook and returns the decoded
JSON body. Shape interpretation is left to relaychat.normalizer.
"""

import logging
from typing import Any

import httpx

from relaychat.config import WebhookSettings
from relaychat.exceptions import TransportError

logger = logging.getLogger(__name__)


class WebhookClient:
    """
    Async client for a chat webhook (for example an n8n AI Agent trigger).

    Each turn is a POST with ``{"chatInput": ..., "sessionId": ...}``.
    Any non-2xx status, network failure, timeout or non-JSON body is
    raised as TransportError.
    """

    def __init__(
        self,
        url: str | None,
        timeout: float = 60.0,
        client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize webhook client.

        Args:
            url: Webhook endpoint; None defers the failure to send()
            timeout: Request timeout in seconds
            client: Optional preconfigured httpx client (tests inject one
                with a MockTransport)
        """
        self.url = url
        self.timeout = timeout
        self.client = client or httpx.AsyncClient(timeout=float(timeout))

    @classmethod
    def from_settings(cls, settings: WebhookSettings) -> "WebhookClient":
        return cls(url=settings.url, timeout=settings.timeout)

    async def send(self, message: str, session_id: str) -> Any:
        """
        Post a message and return the decoded response body.

        Args:
            message: User text for this turn
            session_id: Correlation id of the session the turn belongs to

        Returns:
            Decoded JSON of arbitrary shape

        Raises:
            TransportError: If the request fails or the body is not JSON
        """
        if not self.url:
            raise TransportError("Webhook URL is not configured. Set WEBHOOK_URL.")

        payload = {"chatInput": message, "sessionId": session_id}
        try:
            response = await self.client.post(self.url, json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status_code = exc.response.status_code
            raise TransportError(
                f"HTTP error! status: {status_code}",
                status_code=status_code,
                context={"url": self.url},
            ) from exc
        except httpx.HTTPError as exc:
            raise TransportError(
                f"Webhook request failed: {exc}",
                context={"url": self.url},
            ) from exc

        try:
            data = response.json()
        except (ValueError, RecursionError) as exc:
            raise TransportError(
                "Webhook returned a non-JSON body",
                status_code=response.status_code,
                context={"url": self.url},
            ) from exc

        logger.debug("API Response: %s", response.text)
        return data

    async def close(self) -> None:
        await self.client.aclose()

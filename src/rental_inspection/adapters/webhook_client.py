"""Webhook client for completion notifications."""

from dataclasses import dataclass

import httpx

from rental_inspection.errors import NotificationFailed
from rental_inspection.services.notifications import NotificationClient


@dataclass
class HttpxWebhookClient(NotificationClient):
    """Notification client posting to a webhook with httpx."""

    url: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, url: str) -> "HttpxWebhookClient":
        """Create a webhook client with a managed httpx session."""
        return cls(url=url, http_client=httpx.AsyncClient())

    async def notify(self, order_id: str, store_id: str) -> None:
        """Post the completion payload to the webhook."""
        payload = {"order_id": order_id, "store_id": store_id, "all_ok": "yes"}
        try:
            response = await self.http_client.post(self.url, json=payload, timeout=10)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise NotificationFailed(f"Webhook call failed: {exc}") from exc

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()

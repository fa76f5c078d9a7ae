"""Webhook notifier adapter."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

import httpx

from shoot_pipeline.services.notifications import Notifier


@dataclass
class HttpxWebhookNotifier(Notifier):
    """Posts workflow events as JSON to a configured URL."""

    url: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, url: str) -> "HttpxWebhookNotifier":
        """Create a notifier with a managed httpx session."""
        return cls(url=url, http_client=httpx.AsyncClient())

    async def notify(
        self, event: str, shoot_id: UUID, payload: dict[str, object]
    ) -> None:
        """Send one event."""
        body = {
            "event": event,
            "shootId": str(shoot_id),
            "sentAt": datetime.now(tz=UTC).isoformat(),
            "payload": payload,
        }
        response = await self.http_client.post(self.url, json=body, timeout=10)
        response.raise_for_status()

    async def close(self) -> None:
        """Close the underlying HTTP client session."""
        await self.http_client.aclose()

"""Producer notifications."""

import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

logger = logging.getLogger(__name__)

HANDOFF_READY = "handoff_ready"
EDITOR_UPLOAD_COMPLETE = "editor_upload_complete"
FINAL_HANDOFF_READY = "final_handoff_ready"


class Notifier(Protocol):
    """Delivers workflow events to whoever tracks the shoot."""

    async def notify(
        self, event: str, shoot_id: UUID, payload: dict[str, object]
    ) -> None:
        """Send one event."""


@dataclass
class LoggingNotifier:
    """Notifier that only writes events to the log."""

    async def notify(
        self, event: str, shoot_id: UUID, payload: dict[str, object]
    ) -> None:
        """Log the event."""
        logger.info("Notification %s for shoot %s: %s", event, shoot_id, payload)


async def notify_quietly(
    notifier: Notifier, event: str, shoot_id: UUID, payload: dict[str, object]
) -> bool:
    """Send an event, logging instead of raising on delivery failure."""
    try:
        await notifier.notify(event, shoot_id, payload)
    except Exception:
        logger.exception("Failed to deliver %s notification for %s", event, shoot_id)
        return False
    return True

"""
Round / team notifier.

Fire-and-forget publishing on top of a BroadcastAdapter. A failed publish is
logged and swallowed: notifying subscribers must never fail the mutation that
triggered it.
"""
import logging
from typing import Any, Dict, Optional

from .broadcast_adapter import BroadcastAdapter
from .in_memory_adapter import InMemoryAdapter

logger = logging.getLogger(__name__)


def status_update_topic(event_id: int, round_no: int) -> str:
    return f"STATUS_UPDATE/{event_id}-{round_no}"


def team_updated_topic(event_id: int, round_no: int) -> str:
    return f"TEAM_UPDATED/{event_id}-{round_no}"


class Notifier:
    def __init__(self, adapter: Optional[BroadcastAdapter] = None):
        self.adapter = adapter or InMemoryAdapter()

    async def publish(self, topic: str, payload: Dict[str, Any]) -> bool:
        """Returns True if the adapter accepted the message."""
        try:
            message = self.adapter.build_message(topic, payload)
            await self.adapter.publish(topic, message)
            return True
        except Exception as e:
            logger.warning(f"Notification to {topic} failed and was dropped: {type(e).__name__}: {e}")
            return False

    async def round_status_changed(self, event_id: int, round_no: int) -> bool:
        return await self.publish(
            status_update_topic(event_id, round_no),
            {"eventId": event_id, "roundNo": round_no},
        )

    async def team_updated(self, event_id: int, round_no: int, team_payload: Dict[str, Any]) -> bool:
        return await self.publish(team_updated_topic(event_id, round_no), team_payload)

    async def close(self) -> None:
        await self.adapter.close()


_notifier: Optional[Notifier] = None


def get_notifier() -> Notifier:
    """Process-wide notifier; replaced at startup when Redis is configured."""
    global _notifier
    if _notifier is None:
        _notifier = Notifier()
    return _notifier


def set_notifier(notifier: Notifier) -> None:
    global _notifier
    _notifier = notifier

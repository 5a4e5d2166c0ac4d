"""
Broadcast Adapter Interface

Abstract base class for pub/sub implementations used to announce round and
team changes to subscribers. Delivery-only: the database stays the source of
truth and subscribers re-read state on notification.
"""
import abc
import json
import hashlib
from typing import Dict, Any


class BroadcastAdapter(abc.ABC):
    """
    Abstract base class for broadcast adapters.

    Guarantees:
    - Deterministic message serialization (sort_keys=True)
    - Every message carries its topic and a content hash
    """

    REQUIRED_FIELDS = ("topic", "payload", "event_hash")

    @abc.abstractmethod
    async def publish(self, topic: str, message: Dict[str, Any]) -> None:
        """
        Publish message to a topic.

        Args:
            topic: Topic name (e.g., "STATUS_UPDATE/4-1")
            message: Envelope built by build_message
        """
        raise NotImplementedError

    @abc.abstractmethod
    async def subscribe(self, topic: str):
        """
        Subscribe to a topic and yield messages.

        Yields:
            Parsed message dict
        """
        raise NotImplementedError

    @abc.abstractmethod
    async def close(self) -> None:
        """Close adapter connections."""
        raise NotImplementedError

    def _serialize_message(self, message: Dict[str, Any]) -> str:
        return json.dumps(message, sort_keys=True, separators=(',', ':'), default=str)

    def _compute_message_hash(self, message: Dict[str, Any]) -> str:
        serialized = self._serialize_message(message)
        return hashlib.sha256(serialized.encode()).hexdigest()

    def build_message(self, topic: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Wrap a payload in the envelope every subscriber receives."""
        return {
            "topic": topic,
            "payload": payload,
            "event_hash": self._compute_message_hash({"topic": topic, "payload": payload}),
        }

    def validate_message(self, message: Dict[str, Any]) -> bool:
        """
        Raises:
            ValueError: If required fields missing
        """
        missing = [f for f in self.REQUIRED_FIELDS if f not in message]
        if missing:
            raise ValueError(f"Message missing required fields: {missing}")
        return True

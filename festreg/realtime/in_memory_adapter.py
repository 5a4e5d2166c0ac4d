"""
In-Memory Broadcast Adapter (Development Mode)

Local-only broadcast implementation using asyncio.Queue.
No Redis dependency for development/testing.
"""
import asyncio
import json
from typing import Dict, Any, Set
from .broadcast_adapter import BroadcastAdapter


class InMemoryAdapter(BroadcastAdapter):
    """
    In-memory broadcast adapter for development.

    Uses asyncio.Queue for local-only message passing. Slow subscribers lose
    messages once their queue is full.
    """

    def __init__(self, queue_size: int = 100):
        self._topics: Dict[str, Set[asyncio.Queue]] = {}
        self._lock = asyncio.Lock()
        self._queue_size = queue_size

    async def publish(self, topic: str, message: Dict[str, Any]) -> None:
        self.validate_message(message)

        serialized = self._serialize_message(message)

        async with self._lock:
            queues = list(self._topics.get(topic, ()))
        for queue in queues:
            try:
                queue.put_nowait(serialized)
            except asyncio.QueueFull:
                pass

    async def subscribe(self, topic: str):
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._queue_size)

        async with self._lock:
            self._topics.setdefault(topic, set()).add(queue)

        try:
            while True:
                serialized = await queue.get()
                if serialized is None:
                    return
                try:
                    yield json.loads(serialized)
                except json.JSONDecodeError:
                    continue
        finally:
            async with self._lock:
                if topic in self._topics:
                    self._topics[topic].discard(queue)

    def subscriber_count(self, topic: str) -> int:
        return len(self._topics.get(topic, ()))

    async def close(self) -> None:
        """Close all topics."""
        async with self._lock:
            for queues in self._topics.values():
                for queue in queues:
                    try:
                        queue.put_nowait(None)  # Signal shutdown
                    except asyncio.QueueFull:
                        pass
            self._topics.clear()

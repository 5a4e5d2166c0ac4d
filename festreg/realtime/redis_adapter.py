"""
Redis Broadcast Adapter

Pub/Sub across gunicorn workers. Channels are namespaced as
`festreg:<topic>` so several deployments can share one Redis.
"""
import json
import logging
from typing import Dict, Any, Optional

from redis import asyncio as aioredis
from redis.exceptions import RedisError

from .broadcast_adapter import BroadcastAdapter
from .in_memory_adapter import InMemoryAdapter

logger = logging.getLogger(__name__)

CHANNEL_PREFIX = "festreg:"


class RedisAdapter(BroadcastAdapter):
    """Redis is delivery-only; nothing is read back from it."""

    def __init__(self, redis_url: str = "redis://localhost:6379/0", prefix: str = CHANNEL_PREFIX):
        self.redis_url = redis_url
        self.prefix = prefix
        self._redis: Optional[aioredis.Redis] = None

    def channel(self, topic: str) -> str:
        return f"{self.prefix}{topic}"

    async def connect(self) -> None:
        """Open the connection pool and ping once so a bad URL fails at startup."""
        self._redis = aioredis.from_url(
            self.redis_url,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_keepalive=True,
            retry_on_timeout=True,
        )
        await self._redis.ping()

    async def publish(self, topic: str, message: Dict[str, Any]) -> None:
        if not self._redis:
            await self.connect()

        self.validate_message(message)
        receivers = await self._redis.publish(self.channel(topic), self._serialize_message(message))
        logger.debug(f"Published to {topic} ({receivers} receivers)")

    async def subscribe(self, topic: str):
        if not self._redis:
            await self.connect()

        pubsub = self._redis.pubsub()
        await pubsub.subscribe(self.channel(topic))

        try:
            async for message in pubsub.listen():
                if message["type"] != "message":
                    continue
                try:
                    yield json.loads(message["data"])
                except json.JSONDecodeError:
                    logger.warning(f"Dropped undecodable message on {topic}")
        finally:
            await pubsub.unsubscribe(self.channel(topic))
            await pubsub.aclose()

    async def close(self) -> None:
        if self._redis:
            await self._redis.aclose()
            self._redis = None


async def create_broadcast_adapter(
    use_redis: bool = False,
    redis_url: str = "redis://localhost:6379/0"
) -> BroadcastAdapter:
    """
    RedisAdapter when enabled and reachable, otherwise the in-process adapter.

    An unreachable Redis only costs cross-worker notifications, so startup
    continues with InMemoryAdapter.
    """
    if not use_redis:
        return InMemoryAdapter()

    adapter = RedisAdapter(redis_url)
    try:
        await adapter.connect()
    except (RedisError, OSError) as e:
        logger.error(f"Redis at {redis_url} unavailable, notifications stay in-process: {e}")
        await adapter.close()
        return InMemoryAdapter()
    return adapter

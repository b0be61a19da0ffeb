"""Redis-backed settings store and event log access."""

import json
from typing import Any

import redis.asyncio as redis

from kitchen_inventory.config import get_settings
from kitchen_inventory.utils.logging import get_logger

logger = get_logger(__name__)


class StateManager:
    """Centralized state access using Redis."""

    def __init__(self, redis_url: str | None = None) -> None:
        self.redis_client: redis.Redis | None = None
        self.redis_url = redis_url or get_settings().redis_url

    async def connect(self) -> None:
        """Establish Redis connection."""
        if self.redis_client is None:
            self.redis_client = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
            logger.info("redis_connected", url=self.redis_url)

    async def disconnect(self) -> None:
        """Close Redis connection."""
        if self.redis_client:
            await self.redis_client.aclose()
            self.redis_client = None
            logger.info("redis_disconnected")

    async def set(
        self,
        key: str,
        value: Any,
        ttl: int | None = None,
    ) -> None:
        """Set a value in Redis with optional TTL."""
        if not self.redis_client:
            await self.connect()

        # Serialize complex objects to JSON
        if isinstance(value, (dict, list)):
            value = json.dumps(value)

        await self.redis_client.set(key, value)

        if ttl:
            await self.redis_client.expire(key, ttl)

        logger.debug("state_set", key=key, ttl=ttl)

    async def get(self, key: str) -> Any:
        """Get a value from Redis."""
        if not self.redis_client:
            await self.connect()

        value = await self.redis_client.get(key)

        if value:
            # Try to deserialize JSON
            try:
                return json.loads(value)
            except (json.JSONDecodeError, TypeError):
                return value

        return None

    async def delete(self, *keys: str) -> None:
        """Delete keys from Redis."""
        if not self.redis_client:
            await self.connect()

        await self.redis_client.delete(*keys)
        logger.debug("state_deleted", keys=list(keys))

    async def append(self, key: str, value: Any) -> int:
        """Append a value to the list stored at key."""
        if not self.redis_client:
            await self.connect()

        if isinstance(value, (dict, list)):
            value = json.dumps(value)

        return await self.redis_client.rpush(key, value)

    async def lrange(self, key: str, start: int = 0, end: int = -1) -> list[Any]:
        """Get list members, deserializing JSON entries."""
        if not self.redis_client:
            await self.connect()

        result = []
        for value in await self.redis_client.lrange(key, start, end):
            try:
                result.append(json.loads(value))
            except (json.JSONDecodeError, TypeError):
                result.append(value)

        return result

    async def keys(self, pattern: str) -> list[str]:
        """List keys matching a pattern."""
        if not self.redis_client:
            await self.connect()

        return [key async for key in self.redis_client.scan_iter(match=pattern)]

    async def publish(self, channel: str, message: str) -> None:
        """Publish a message to a channel."""
        if not self.redis_client:
            await self.connect()

        await self.redis_client.publish(channel, message)
        logger.debug("message_published", channel=channel)


# Global state manager instance
_state_manager: StateManager | None = None


async def get_state_manager() -> StateManager:
    """Get the global state manager instance."""
    global _state_manager
    if _state_manager is None:
        _state_manager = StateManager()
        await _state_manager.connect()
    return _state_manager

"""Redis-backed key-value store."""

import json
from dataclasses import dataclass

import redis.asyncio as redis

from draw_sessions.services.kv_store import KeyValueStore


@dataclass
class RedisKeyValueStore(KeyValueStore):
    """Key-value store that keeps JSON-encoded values in Redis."""

    client: redis.Redis

    @classmethod
    def create(cls, url: str) -> "RedisKeyValueStore":
        """Create a store with a pooled Redis client."""
        client = redis.from_url(
            url,
            decode_responses=True,
            health_check_interval=30,
        )
        return cls(client=client)

    async def get(self, key: str) -> object | None:
        raw = await self.client.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    async def set(
        self, key: str, value: object, ttl_seconds: int | None = None
    ) -> None:
        await self.client.set(key, json.dumps(value), ex=ttl_seconds)

    async def delete(self, key: str) -> None:
        await self.client.delete(key)

    async def exists(self, key: str) -> bool:
        return await self.client.exists(key) == 1

    async def touch(self, key: str, ttl_seconds: int) -> bool:
        return bool(await self.client.expire(key, ttl_seconds))

    async def close(self) -> None:
        """Close the Redis connection pool."""
        await self.client.aclose()

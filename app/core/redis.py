"""Redis client construction and the learning-pipeline cache."""

import json
import logging
from datetime import datetime, timezone
from typing import Awaitable, cast

from redis.asyncio import Redis

logger = logging.getLogger(__name__)

HIGH_PERFORMERS_KEY = "learning:high_performers"
PROCESSED_ITEMS_KEY = "learning:processed_items"
LAST_RUN_KEY = "learning:pipeline:last_run"


def create_redis_client(url: str) -> Redis:
    """Build a Redis client; the caller owns its lifecycle."""
    return Redis.from_url(url, decode_responses=True)


async def close_redis(client: Redis | None) -> None:
    """Close Redis client connections."""
    if client is None:
        return
    await client.aclose()
    logger.info("Redis connection closed")


class HighPerformerCache:
    """Typed cache operations for high-performer ids and learning runs."""

    def __init__(self, client: Redis, *, ttl_seconds: int = 3600) -> None:
        self._client = client
        self.ttl_seconds = ttl_seconds

    async def set_high_performers(self, content_item_ids: list[str]) -> None:
        await self._client.set(
            HIGH_PERFORMERS_KEY,
            json.dumps(content_item_ids),
            ex=self.ttl_seconds,
        )

    async def get_high_performers(self) -> list[str]:
        raw = await self._client.get(HIGH_PERFORMERS_KEY)
        if not raw:
            return []
        parsed = json.loads(raw)
        return [str(item) for item in parsed] if isinstance(parsed, list) else []

    async def mark_processed(self, content_item_id: str) -> None:
        await cast(Awaitable[int], self._client.sadd(PROCESSED_ITEMS_KEY, content_item_id))

    async def processed_ids(self) -> set[str]:
        members = await cast(Awaitable[set[str]], self._client.smembers(PROCESSED_ITEMS_KEY))
        return {str(member) for member in members}

    async def record_run(self, when: datetime | None = None) -> None:
        stamp = (when or datetime.now(timezone.utc)).isoformat()
        await self._client.set(LAST_RUN_KEY, stamp)

    async def last_run(self) -> str | None:
        value = await self._client.get(LAST_RUN_KEY)
        return str(value) if value else None

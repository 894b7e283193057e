# autoscaler/infrastructure/cache/redis_client.py

import json

import redis.asyncio as redis

from autoscaler.domain.models.event import ScalingEvent

CHECKPOINT_KEY = "autoscaler:{deployment}:desired_count"
EVENTS_KEY = "autoscaler:{deployment}:events"


class RedisCheckpoint:
    """Desired replica count kept in Redis so a restarted loop can resume a resize."""

    def __init__(self, client, deployment: str):
        self.client = client
        self._key = CHECKPOINT_KEY.format(deployment=deployment)

    async def save(self, desired_count: int) -> None:
        await self.client.set(self._key, str(desired_count))

    async def load(self) -> int | None:
        value = await self.client.get(self._key)
        return int(value) if value is not None else None


class RedisEventBuffer:
    """
    Capped Redis list of scaling events, newest first. Outlives the process
    so collectors can still scrape events after a restart.
    """

    def __init__(self, client, deployment: str, capacity: int = 1000):
        self.client = client
        self._key = EVENTS_KEY.format(deployment=deployment)
        self._capacity = capacity

    async def append(self, event: ScalingEvent) -> None:
        await self.client.lpush(self._key, json.dumps(event.to_dict()))
        await self.client.ltrim(self._key, 0, self._capacity - 1)

    async def load(self, limit: int) -> list[ScalingEvent]:
        raw = await self.client.lrange(self._key, 0, limit - 1)
        return [ScalingEvent.from_dict(json.loads(item)) for item in raw]


def create_redis_client(redis_url: str):
    return redis.from_url(redis_url, decode_responses=True)

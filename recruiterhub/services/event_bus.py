"""
Publish/subscribe bus for dashboard events.

Subscribers are local asyncio queues. With a Redis URL configured every message goes
through one Redis channel, so all processes serving the dashboard see the same stream.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict

import redis.asyncio as redis
from redis.exceptions import RedisError

from recruiterhub.core.config import settings

logger = logging.getLogger("rh.events")


class EventBus:
    def __init__(self, redis_url: str | None = None, channel: str | None = None) -> None:
        self._subscribers: set[asyncio.Queue[str]] = set()
        self._subscribers_lock = asyncio.Lock()
        self._redis_url = (settings.redis_url if redis_url is None else redis_url).strip()
        self._channel = channel or settings.event_channel
        self._redis: redis.Redis | None = None
        self._connect_lock = asyncio.Lock()
        self._relay_task: asyncio.Task | None = None

    @property
    def distributed(self) -> bool:
        return bool(self._redis_url)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    @staticmethod
    def encode(payload: Dict[str, Any]) -> str:
        return json.dumps(payload, ensure_ascii=False, separators=(",", ":"), default=str)

    async def _deliver(self, data: str) -> int:
        async with self._subscribers_lock:
            for queue in self._subscribers:
                if queue.full():
                    # Bounded live streams keep the newest messages.
                    queue.get_nowait()
                queue.put_nowait(data)
            return len(self._subscribers)

    async def _connection(self) -> redis.Redis | None:
        if not self.distributed:
            return None
        async with self._connect_lock:
            if self._redis is None:
                self._redis = redis.from_url(self._redis_url, decode_responses=True)
            if self._relay_task is None or self._relay_task.done():
                self._relay_task = asyncio.create_task(self._relay(self._redis))
        return self._redis

    async def _relay(self, client: redis.Redis) -> None:
        pubsub = client.pubsub()
        try:
            await pubsub.subscribe(self._channel)
            async for message in pubsub.listen():
                if not message or message.get("type") != "message":
                    continue
                data = message.get("data")
                if isinstance(data, bytes):
                    data = data.decode()
                if isinstance(data, str):
                    await self._deliver(data)
        except RedisError:
            logger.warning("event_bus_relay_stopped", extra={"channel": self._channel}, exc_info=True)
        finally:
            await pubsub.aclose()

    async def subscribe(self, maxsize: int = 200) -> asyncio.Queue[str]:
        """Register a queue; ``maxsize=0`` gives an unbounded queue that never drops."""
        queue: asyncio.Queue[str] = asyncio.Queue(maxsize=maxsize)
        async with self._subscribers_lock:
            self._subscribers.add(queue)
        await self._connection()
        return queue

    async def unsubscribe(self, queue: asyncio.Queue[str]) -> None:
        async with self._subscribers_lock:
            self._subscribers.discard(queue)

    async def publish(self, payload: Dict[str, Any]) -> None:
        data = self.encode(payload)
        client = await self._connection()
        if client is not None:
            try:
                await client.publish(self._channel, data)
                return
            except RedisError:
                logger.warning("event_bus_redis_publish_failed", extra={"channel": self._channel}, exc_info=True)
        await self._deliver(data)

    async def close(self) -> None:
        if self._relay_task is not None and not self._relay_task.done():
            self._relay_task.cancel()
            try:
                await self._relay_task
            except asyncio.CancelledError:
                pass
        self._relay_task = None
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None


event_bus = EventBus()

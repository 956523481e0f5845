"""Presence channel on Redis: a hash of tracked keys plus a sync ping."""
from __future__ import annotations

import json
import logging
from typing import Any

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from pair_chat.application.exceptions import ChannelError, SubscriptionLoss
from pair_chat.application.ports.channels import OnSyncCallback
from pair_chat.infrastructure.bus.redis_pubsub import RedisPubSubPublisher, RedisPubSubSubscriber

logger = logging.getLogger(__name__)

SYNC_EVENT = "presence.sync"


class RedisPresenceChannel:
    """Each ``track`` overwrites the caller's entry and pings every member.

    Members answer a ping by reading the whole hash, so every ``on_sync``
    call carries the aggregated ``{key: meta}`` state. The hash expires
    a few windows after the last announce; staleness of single entries is
    judged by the reader from the ``updatedAt`` field.
    """

    def __init__(self, redis: aioredis.Redis, channel: str, *, window_seconds: float = 20.0) -> None:
        self._redis = redis
        self._channel = channel
        self._state_key = f"{channel}:state"
        self._ttl = max(1, int(window_seconds * 3))
        self._publisher = RedisPubSubPublisher(redis)

    async def join(self, key: str, on_sync: OnSyncCallback) -> RedisPubSubSubscriber:
        async def _on_ping(event_type: str, data: dict[str, Any]) -> None:
            if event_type == SYNC_EVENT:
                await on_sync(await self.snapshot())

        subscriber = RedisPubSubSubscriber(self._redis, self._channel, _on_ping)
        await subscriber.start()
        try:
            await on_sync(await self.snapshot())
        except ChannelError as exc:
            subscriber.close()
            raise SubscriptionLoss(f"Could not read presence state of {self._channel}") from exc
        logger.debug("Presence key %s joined %s", key, self._channel)
        return subscriber

    async def track(self, key: str, meta: dict[str, Any]) -> None:
        try:
            await self._redis.hset(self._state_key, key, json.dumps(meta))
            await self._redis.expire(self._state_key, self._ttl)
            await self._publisher.publish(self._channel, SYNC_EVENT, {"key": key})
        except RedisError as exc:
            raise ChannelError(f"Could not announce presence on {self._channel}") from exc

    async def snapshot(self) -> dict[str, dict[str, Any]]:
        try:
            raw = await self._redis.hgetall(self._state_key)
        except RedisError as exc:
            raise ChannelError(f"Could not read presence state of {self._channel}") from exc
        state: dict[str, dict[str, Any]] = {}
        for key, value in raw.items():
            try:
                state[key] = json.loads(value)
            except ValueError:
                logger.debug("Skipping malformed presence entry %s on %s", key, self._channel)
        return state

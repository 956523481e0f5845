"""Redis Pub/Sub: publisher, room-scoped subscriber and typing channel."""
from __future__ import annotations

import asyncio
import logging
from typing import Any

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from pair_chat.application.exceptions import ChannelError, SubscriptionLoss
from pair_chat.application.ports.channels import OnBroadcastCallback
from pair_chat.application.ports.store import OnLossCallback
from pair_chat.infrastructure.bus.serializer import deserialize_event, serialize_event

logger = logging.getLogger(__name__)


class RedisPubSubPublisher:
    def __init__(self, redis: aioredis.Redis) -> None:
        self._redis = redis

    async def publish(self, channel: str, event_type: str, payload: dict[str, Any]) -> None:
        raw = serialize_event(event_type, payload)
        await self._redis.publish(channel, raw)


class RedisPubSubSubscriber:
    """Background task that listens to one Redis channel and dispatches events.

    ``start`` returns only once the channel is subscribed. ``close`` is
    synchronous so a room can be left without awaiting the listener.
    """

    def __init__(
        self,
        redis: aioredis.Redis,
        channel: str,
        callback: OnBroadcastCallback,
        *,
        on_loss: OnLossCallback | None = None,
    ) -> None:
        self._redis = redis
        self._channel = channel
        self._callback = callback
        self._on_loss = on_loss
        self._pubsub: Any = None
        self._task: asyncio.Task[None] | None = None

    async def start(self) -> None:
        pubsub = self._redis.pubsub()
        try:
            await pubsub.subscribe(self._channel)
        except RedisError as exc:
            await pubsub.aclose()
            raise SubscriptionLoss(f"Could not subscribe to {self._channel}") from exc
        self._pubsub = pubsub
        self._task = asyncio.create_task(self._listen(), name=f"redis-pubsub-{self._channel}")
        logger.info("Redis Pub/Sub subscriber started on channel=%s", self._channel)

    def close(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def _listen(self) -> None:
        pubsub = self._pubsub
        lost: BaseException | None = None
        try:
            async for message in pubsub.listen():
                if message["type"] != "message":
                    continue
                try:
                    event_type, data = deserialize_event(message["data"])
                    await self._callback(event_type, data)
                except Exception:
                    logger.exception("Error processing pubsub message on %s", self._channel)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            lost = exc
        finally:
            try:
                await pubsub.unsubscribe(self._channel)
                await pubsub.aclose()
            except RedisError:
                logger.debug("Pub/Sub cleanup failed on %s", self._channel, exc_info=True)

        logger.warning("Pub/Sub listener on %s stopped: %s", self._channel, lost or "unsubscribed")
        if self._on_loss is not None:
            await self._on_loss(lost)


class RedisBroadcastChannel:
    """Fire-and-forget room channel (typing). Echoes reach the sender too."""

    def __init__(self, redis: aioredis.Redis, channel: str) -> None:
        self._redis = redis
        self._channel = channel
        self._publisher = RedisPubSubPublisher(redis)

    async def publish(self, event: str, payload: dict[str, Any]) -> None:
        try:
            await self._publisher.publish(self._channel, event, payload)
        except RedisError as exc:
            raise ChannelError(f"Could not publish on {self._channel}") from exc

    async def subscribe(self, callback: OnBroadcastCallback) -> RedisPubSubSubscriber:
        subscriber = RedisPubSubSubscriber(self._redis, self._channel, callback)
        await subscriber.start()
        return subscriber

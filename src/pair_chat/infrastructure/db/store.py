"""Durable Message Store on Postgres, with the change feed relayed over Redis."""
from __future__ import annotations

import logging
from typing import Any, Callable
from uuid import UUID

import redis.asyncio as aioredis
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pair_chat.application.exceptions import FetchError, SendError
from pair_chat.application.ports.store import OnChangeCallback, OnLossCallback
from pair_chat.domain.entities.message import Message
from pair_chat.domain.events import MessageDeleted, MessageInserted
from pair_chat.domain.value_objects.enums import ChangeKind
from pair_chat.infrastructure.bus.redis_pubsub import RedisPubSubSubscriber
from pair_chat.infrastructure.bus.serializer import payload_to_message
from pair_chat.infrastructure.db.uow import SqlAlchemyUoW
from pair_chat.services import message_service

logger = logging.getLogger(__name__)


def decode_change(event_type: str, data: dict[str, Any]) -> MessageInserted | MessageDeleted | None:
    """Map a relayed outbox envelope to a feed event. Unknown types yield None."""
    if event_type == ChangeKind.INSERT:
        msg = payload_to_message(data)
        return MessageInserted(room_id=msg.room_id, message=msg)
    if event_type == ChangeKind.DELETE:
        return MessageDeleted(room_id=UUID(data["room_id"]), message_id=UUID(data["id"]))
    return None


class SqlMessageStore:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        redis: aioredis.Redis,
        feed_channel: Callable[[UUID], str],
    ) -> None:
        self._session_factory = session_factory
        self._redis = redis
        self._feed_channel = feed_channel

    async def list_messages(self, room_id: UUID) -> list[Message]:
        try:
            async with self._session_factory() as session:
                return await message_service.list_messages(room_id, SqlAlchemyUoW(session))
        except SQLAlchemyError as exc:
            logger.warning("History query failed for room %s", room_id, exc_info=True)
            raise FetchError("Could not load messages.") from exc

    async def insert(self, room_id: UUID, sender_id: UUID, content: str) -> Message:
        try:
            async with self._session_factory() as session:
                async with SqlAlchemyUoW(session) as uow:
                    return await message_service.create_message(room_id, sender_id, content, uow)
        except SQLAlchemyError as exc:
            raise SendError("Could not send message.") from exc

    async def delete(self, message_id: UUID) -> None:
        try:
            async with self._session_factory() as session:
                async with SqlAlchemyUoW(session) as uow:
                    await message_service.delete_message(message_id, uow)
        except SQLAlchemyError as exc:
            raise SendError("Could not delete message.") from exc

    async def subscribe(
        self,
        room_id: UUID,
        on_change: OnChangeCallback,
        on_loss: OnLossCallback,
    ) -> RedisPubSubSubscriber:
        async def _on_envelope(event_type: str, data: dict[str, Any]) -> None:
            event = decode_change(event_type, data)
            if event is None:
                logger.debug("Ignoring feed event %s", event_type)
                return
            await on_change(event)

        subscriber = RedisPubSubSubscriber(
            self._redis, self._feed_channel(room_id), _on_envelope, on_loss=on_loss,
        )
        await subscriber.start()
        return subscriber

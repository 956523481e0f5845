from __future__ import annotations

from uuid import UUID

from sqlalchemy import delete, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from pair_chat.domain.entities.message import Message
from pair_chat.infrastructure.db.mappers import message as mapper
from pair_chat.infrastructure.db.models.message import MessageModel


class MessageReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_messages(self, room_id: UUID) -> list[Message]:
        stmt = (
            select(MessageModel)
            .where(MessageModel.room_id == room_id)
            .order_by(MessageModel.created_at.asc(), MessageModel.id.asc())
        )
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]


class MessageWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, room_id: UUID, sender_id: UUID, content: str) -> Message:
        """Insert a row; id and created_at are assigned by the database."""
        stmt = (
            insert(MessageModel)
            .values(room_id=room_id, sender_id=sender_id, content=content)
            .returning(MessageModel)
        )
        result = await self._session.execute(stmt)
        return mapper.model_to_entity(result.scalar_one())

    async def delete(self, message_id: UUID) -> Message | None:
        stmt = (
            delete(MessageModel)
            .where(MessageModel.id == message_id)
            .returning(MessageModel)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return mapper.model_to_entity(model) if model else None

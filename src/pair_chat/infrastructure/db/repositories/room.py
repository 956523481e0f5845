from __future__ import annotations

from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pair_chat.domain.entities.room import Room
from pair_chat.infrastructure.db.mappers import room as mapper
from pair_chat.infrastructure.db.models.room import ProfileModel, RoomModel


class RoomReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_for_user(self, user_id: UUID) -> Room | None:
        stmt = (
            select(RoomModel)
            .where(or_(RoomModel.user_a == user_id, RoomModel.user_b == user_id))
            .limit(1)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return mapper.model_to_entity(model) if model else None

    async def get_username(self, user_id: UUID) -> str | None:
        model = await self._session.get(ProfileModel, user_id)
        return model.username if model else None


class RoomWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, room: Room) -> Room:
        model = mapper.entity_to_model(room)
        self._session.add(model)
        await self._session.flush()
        return mapper.model_to_entity(model)

    async def set_username(self, user_id: UUID, username: str) -> None:
        stmt = (
            pg_insert(ProfileModel)
            .values(id=user_id, username=username)
            .on_conflict_do_update(index_elements=[ProfileModel.id], set_={"username": username})
        )
        await self._session.execute(stmt)


class PooledRoomReader:
    """RoomReader that checks a fresh session out of the pool per call."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get_for_user(self, user_id: UUID) -> Room | None:
        async with self._session_factory() as session:
            return await RoomReaderRepo(session).get_for_user(user_id)

    async def get_username(self, user_id: UUID) -> str | None:
        async with self._session_factory() as session:
            return await RoomReaderRepo(session).get_username(user_id)

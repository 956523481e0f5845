from __future__ import annotations

from typing import Protocol
from uuid import UUID

from pair_chat.domain.entities.room import Room


class RoomReader(Protocol):
    async def get_for_user(self, user_id: UUID) -> Room | None: ...

    async def get_username(self, user_id: UUID) -> str | None: ...


class RoomWriter(Protocol):
    async def create(self, room: Room) -> Room: ...

    async def set_username(self, user_id: UUID, username: str) -> None: ...

from __future__ import annotations

from typing import Protocol
from uuid import UUID

from pair_chat.domain.entities.message import Message


class MessageReader(Protocol):
    async def list_messages(self, room_id: UUID) -> list[Message]: ...


class MessageWriter(Protocol):
    async def create(self, room_id: UUID, sender_id: UUID, content: str) -> Message:
        """Insert a row; id and created_at come from the database."""
        ...

    async def delete(self, message_id: UUID) -> Message | None:
        """Delete a row. Return the removed row, or None if absent."""
        ...

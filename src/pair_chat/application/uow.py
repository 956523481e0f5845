from __future__ import annotations

from typing import Protocol

from pair_chat.application.repositories.message import MessageReader, MessageWriter
from pair_chat.application.repositories.outbox import OutboxWriter
from pair_chat.application.repositories.room import RoomReader, RoomWriter


class UnitOfWork(Protocol):
    rooms: RoomReader
    rooms_w: RoomWriter
    messages: MessageReader
    messages_w: MessageWriter
    outbox: OutboxWriter

    async def commit(self) -> None: ...
    async def rollback(self) -> None: ...
    async def flush(self) -> None: ...

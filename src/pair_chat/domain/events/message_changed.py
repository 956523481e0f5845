from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from pair_chat.domain.entities.message import Message


@dataclass(frozen=True, slots=True)
class MessageInserted:
    room_id: UUID
    message: Message


@dataclass(frozen=True, slots=True)
class MessageDeleted:
    room_id: UUID
    message_id: UUID


@dataclass(frozen=True, slots=True)
class MessageConfirmed:
    """The durable row returned for a local submit."""

    room_id: UUID
    message: Message


@dataclass(frozen=True, slots=True)
class MessageRemovedLocally:
    room_id: UUID
    message_id: UUID

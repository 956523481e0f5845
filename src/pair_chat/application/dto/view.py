from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from pair_chat.domain.entities.message import Message


@dataclass(frozen=True, slots=True)
class ChatView:
    """Snapshot of everything the chat screen renders."""

    room_id: UUID | None
    local_id: UUID | None
    subtitle: str
    messages: tuple[Message, ...] = ()
    draft: str = ""
    sending: bool = False
    partner_online: bool = False
    partner_typing: bool = False
    unread_count: int = 0
    unread_badge: str = ""
    live: bool = True
    error: str | None = None

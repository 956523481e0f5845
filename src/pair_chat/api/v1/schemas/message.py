from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel


class MessageResponse(BaseModel):
    id: UUID
    room_id: UUID
    sender_id: UUID
    content: str
    created_at: datetime

    model_config = {"from_attributes": True}


class ChatViewResponse(BaseModel):
    room_id: UUID | None
    local_id: UUID | None
    subtitle: str
    messages: list[MessageResponse] = []
    draft: str = ""
    sending: bool = False
    partner_online: bool = False
    partner_typing: bool = False
    unread_count: int = 0
    unread_badge: str = ""
    live: bool = True
    error: str | None = None

    model_config = {"from_attributes": True}

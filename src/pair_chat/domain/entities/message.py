from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True, slots=True)
class Message:
    id: UUID
    room_id: UUID
    sender_id: UUID
    content: str
    created_at: datetime

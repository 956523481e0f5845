from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True, slots=True)
class Room:
    """A pair: the single shared conversation scope of two users."""

    id: UUID
    user_a: UUID
    user_b: UUID
    created_at: datetime

    @property
    def participants(self) -> tuple[UUID, UUID]:
        return (self.user_a, self.user_b)

    def has_member(self, user_id: UUID) -> bool:
        return user_id in self.participants

    def partner_of(self, user_id: UUID) -> UUID:
        if user_id == self.user_a:
            return self.user_b
        if user_id == self.user_b:
            return self.user_a
        raise ValueError(f"user {user_id} is not a member of room {self.id}")

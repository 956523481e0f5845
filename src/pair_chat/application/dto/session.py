from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True, slots=True)
class SessionContext:
    """Resolved inputs of one room session."""

    local_id: UUID
    room_id: UUID
    partner_id: UUID
    partner_username: str | None = None

    @property
    def subtitle(self) -> str:
        if self.partner_username:
            return f"Chat with @{self.partner_username}"
        return "Private DM with your person"

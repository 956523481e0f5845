from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel


class RoomContextResponse(BaseModel):
    local_id: UUID
    room_id: UUID
    partner_id: UUID
    partner_username: str | None
    subtitle: str

    model_config = {"from_attributes": True}

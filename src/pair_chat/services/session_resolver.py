from __future__ import annotations

import logging

from pair_chat.application.dto.principal import Principal
from pair_chat.application.dto.session import SessionContext
from pair_chat.application.exceptions import ResolutionError
from pair_chat.application.policies.permissions import assert_room_member
from pair_chat.application.repositories.room import RoomReader

logger = logging.getLogger(__name__)


class SessionResolver:
    """Turns an authenticated principal into the inputs of a room session."""

    def __init__(self, rooms: RoomReader) -> None:
        self._rooms = rooms

    async def resolve(self, principal: Principal | None) -> SessionContext:
        if principal is None:
            raise ResolutionError("You must be logged in to chat.")

        room = await self._rooms.get_for_user(principal.user_id)
        room = assert_room_member(principal.user_id, room)
        partner_id = room.partner_of(principal.user_id)
        username = await self._rooms.get_username(partner_id)

        logger.debug("Resolved user %s to room %s", principal.user_id, room.id)
        return SessionContext(
            local_id=principal.user_id,
            room_id=room.id,
            partner_id=partner_id,
            partner_username=username,
        )

from __future__ import annotations

from uuid import UUID

from pair_chat.application.exceptions import ForbiddenError, ResolutionError
from pair_chat.domain.entities.message import Message
from pair_chat.domain.entities.room import Room


def assert_room_member(user_id: UUID, room: Room | None) -> Room:
    """Raise if there is no room or the user is not one of its two members."""
    if room is None:
        raise ResolutionError("You are not linked with anyone yet.")
    if not room.has_member(user_id):
        raise ForbiddenError("Not a participant of this room")
    return room


def assert_own_message(user_id: UUID, message: Message | None) -> Message:
    if message is None or message.sender_id != user_id:
        raise ForbiddenError("Only your own messages can be deleted")
    return message

from __future__ import annotations

from pair_chat.domain.entities.message import Message
from pair_chat.infrastructure.db.models.message import MessageModel


def model_to_entity(model: MessageModel) -> Message:
    return Message(
        id=model.id,
        room_id=model.room_id,
        sender_id=model.sender_id,
        content=model.content,
        created_at=model.created_at,
    )

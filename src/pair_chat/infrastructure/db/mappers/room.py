from __future__ import annotations

from pair_chat.domain.entities.room import Room
from pair_chat.infrastructure.db.models.room import RoomModel


def model_to_entity(model: RoomModel) -> Room:
    return Room(
        id=model.id,
        user_a=model.user_a,
        user_b=model.user_b,
        created_at=model.created_at,
    )


def entity_to_model(entity: Room) -> RoomModel:
    return RoomModel(
        id=entity.id,
        user_a=entity.user_a,
        user_b=entity.user_b,
        created_at=entity.created_at,
    )

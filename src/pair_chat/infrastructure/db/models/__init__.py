"""Import all models so Base.metadata sees every table."""
from pair_chat.infrastructure.db.models.message import MessageModel
from pair_chat.infrastructure.db.models.outbox import OutboxMessageModel
from pair_chat.infrastructure.db.models.room import ProfileModel, RoomModel

__all__ = [
    "MessageModel",
    "OutboxMessageModel",
    "ProfileModel",
    "RoomModel",
]

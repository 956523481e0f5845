from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, String, UniqueConstraint, text
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pair_chat.infrastructure.db.base import Base


class RoomModel(Base):
    """A pair of linked users; the pair id is the room id."""

    __tablename__ = "rooms"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=text("gen_random_uuid()"),
    )
    user_a: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    user_b: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )

    messages = relationship("MessageModel", back_populates="room", lazy="noload")

    __table_args__ = (
        CheckConstraint("user_a <> user_b", name="ck_rooms_distinct_members"),
        UniqueConstraint("user_a", name="uq_rooms_user_a"),
        UniqueConstraint("user_b", name="uq_rooms_user_b"),
    )


class ProfileModel(Base):
    __tablename__ = "profiles"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True)
    username: Mapped[str | None] = mapped_column(String(64), nullable=True, unique=True)

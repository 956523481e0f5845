"""Seed development data: two linked profiles, their room and a short history."""
from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime, timezone

from pair_chat.domain.entities.room import Room
from pair_chat.infrastructure.db.base import Base
from pair_chat.infrastructure.db.session import AsyncSessionLocal, engine
from pair_chat.infrastructure.db.uow import SqlAlchemyUoW
from pair_chat.infrastructure.db import models  # noqa: F401
from pair_chat.services import message_service

logger = logging.getLogger(__name__)

ALEX_ID = uuid.UUID("00000000-0000-4000-8000-00000000000a")
SAM_ID = uuid.UUID("00000000-0000-4000-8000-00000000000b")


async def seed() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as session:
        uow = SqlAlchemyUoW(session)
        existing = await uow.rooms.get_for_user(ALEX_ID)
        if existing is not None:
            logger.info("Room %s already seeded", existing.id)
            return

        await uow.rooms_w.set_username(ALEX_ID, "alex")
        await uow.rooms_w.set_username(SAM_ID, "sam")
        room = await uow.rooms_w.create(
            Room(id=uuid.uuid4(), user_a=ALEX_ID, user_b=SAM_ID, created_at=datetime.now(timezone.utc))
        )

        history = [
            (ALEX_ID, "hey you"),
            (SAM_ID, "hi! how was your day?"),
            (ALEX_ID, "long. tell me something good"),
        ]
        for sender_id, content in history:
            await message_service.create_message(room.id, sender_id, content, uow)

        logger.info("Seeded room %s with %d messages", room.id, len(history))


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    asyncio.run(seed())


if __name__ == "__main__":
    main()

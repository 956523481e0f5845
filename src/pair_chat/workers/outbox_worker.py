"""Outbox worker: relays committed row changes to each room's change feed."""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from uuid import UUID

import redis.asyncio as aioredis

from pair_chat.application.ports.bus import EventPublisher
from pair_chat.application.uow import UnitOfWork
from pair_chat.config import settings
from pair_chat.infrastructure.bus.redis_pubsub import RedisPubSubPublisher
from pair_chat.infrastructure.db.session import AsyncSessionLocal
from pair_chat.infrastructure.db.uow import SqlAlchemyUoW

logger = logging.getLogger(__name__)

BASE_DELAY_SECONDS = 5
MAX_DELAY_SECONDS = 300


def _calc_backoff(attempts: int) -> datetime:
    delay = min(BASE_DELAY_SECONDS * (2 ** attempts), MAX_DELAY_SECONDS)
    return datetime.now(timezone.utc) + timedelta(seconds=delay)


async def run_outbox_worker() -> None:
    redis = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
    publisher = RedisPubSubPublisher(redis)

    logger.info(
        "Outbox worker started (poll=%.1fs, batch=%d, max_attempts=%d)",
        settings.OUTBOX_POLL_INTERVAL,
        settings.OUTBOX_BATCH_SIZE,
        settings.OUTBOX_MAX_ATTEMPTS,
    )

    try:
        while True:
            try:
                await process_batch(publisher)
            except Exception:
                logger.exception("Outbox worker loop error")
            await asyncio.sleep(settings.OUTBOX_POLL_INTERVAL)
    finally:
        await redis.aclose()


async def process_batch(publisher: RedisPubSubPublisher) -> int:
    async with AsyncSessionLocal() as session:
        return await relay_pending(SqlAlchemyUoW(session), publisher)


async def relay_pending(uow: UnitOfWork, publisher: EventPublisher) -> int:
    """Publish one batch in outbox order. Return the number of relayed rows.

    A room whose record fails is skipped for the rest of the batch so its
    later changes are not published ahead of the failed one.
    """
    batch = await uow.outbox.fetch_pending(settings.OUTBOX_BATCH_SIZE)
    if not batch:
        return 0

    sent_ids: list[int] = []
    blocked_rooms: set[UUID] = set()
    for record in batch:
        if record.room_id in blocked_rooms:
            await uow.outbox.mark_failed(record.id, _calc_backoff(record.attempts))
            continue
        if record.attempts >= settings.OUTBOX_MAX_ATTEMPTS:
            logger.warning("Outbox record %d exceeded max attempts, skipping", record.id)
            continue
        try:
            await publisher.publish(
                settings.feed_channel(record.room_id), record.event_type, record.payload,
            )
            sent_ids.append(record.id)
        except Exception:
            logger.exception("Failed to publish outbox record %d", record.id)
            blocked_rooms.add(record.room_id)
            await uow.outbox.mark_failed(record.id, _calc_backoff(record.attempts))

    if sent_ids:
        await uow.outbox.mark_sent(sent_ids)

    await uow.commit()
    if sent_ids:
        logger.info("Published %d outbox records", len(sent_ids))
    return len(sent_ids)


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    asyncio.run(run_outbox_worker())


if __name__ == "__main__":
    main()

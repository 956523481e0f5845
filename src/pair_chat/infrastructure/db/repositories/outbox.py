from __future__ import annotations

from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from pair_chat.application.repositories.outbox import OutboxRecord
from pair_chat.domain.value_objects.enums import OutboxStatus
from pair_chat.infrastructure.db.models.outbox import OutboxMessageModel


def _to_record(model: OutboxMessageModel) -> OutboxRecord:
    return OutboxRecord(
        id=model.id,
        event_type=model.event_type,
        room_id=model.room_id,
        payload=model.payload,
        attempts=model.attempts,
    )


class OutboxWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, event_type: str, room_id: UUID, payload: dict[str, Any]) -> None:
        self._session.add(
            OutboxMessageModel(event_type=event_type, room_id=room_id, payload=payload)
        )
        await self._session.flush()

    async def fetch_pending(self, batch_size: int) -> list[OutboxRecord]:
        """Claim the oldest relayable rows, in id order.

        Rows locked by another relay are skipped; claimed rows move to
        ``processing`` until marked sent or failed.
        """
        due = (
            select(OutboxMessageModel.id)
            .where(
                OutboxMessageModel.status.in_([OutboxStatus.PENDING, OutboxStatus.FAILED]),
                or_(
                    OutboxMessageModel.next_retry_at.is_(None),
                    OutboxMessageModel.next_retry_at <= datetime.now(timezone.utc),
                ),
            )
            .order_by(OutboxMessageModel.id)
            .limit(batch_size)
            .with_for_update(skip_locked=True)
            .scalar_subquery()
        )
        claimed = (
            update(OutboxMessageModel)
            .where(OutboxMessageModel.id.in_(due))
            .values(status=OutboxStatus.PROCESSING)
            .returning(OutboxMessageModel)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(claimed)
        return sorted((_to_record(m) for m in result.scalars().all()), key=lambda r: r.id)

    async def mark_sent(self, ids: list[int]) -> None:
        if ids:
            await self._session.execute(
                update(OutboxMessageModel)
                .where(OutboxMessageModel.id.in_(ids))
                .values(status=OutboxStatus.SENT)
            )

    async def mark_failed(self, record_id: int, next_retry_at: datetime) -> None:
        await self._session.execute(
            update(OutboxMessageModel)
            .where(OutboxMessageModel.id == record_id)
            .values(
                status=OutboxStatus.FAILED,
                attempts=OutboxMessageModel.attempts + 1,
                next_retry_at=next_retry_at,
            )
        )

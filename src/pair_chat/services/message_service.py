"""Durable-side writes: each row change is committed together with its outbox record."""
from __future__ import annotations

from uuid import UUID

from pair_chat.application.uow import UnitOfWork
from pair_chat.domain.entities.message import Message
from pair_chat.domain.value_objects.enums import ChangeKind
from pair_chat.infrastructure.bus.serializer import message_to_payload


async def create_message(
    room_id: UUID,
    sender_id: UUID,
    content: str,
    uow: UnitOfWork,
) -> Message:
    msg = await uow.messages_w.create(room_id, sender_id, content)
    await uow.outbox.add(ChangeKind.INSERT.value, room_id, message_to_payload(msg))
    await uow.commit()
    return msg


async def delete_message(message_id: UUID, uow: UnitOfWork) -> Message | None:
    """Delete a row. Return None, and publish nothing, if it was already gone."""
    msg = await uow.messages_w.delete(message_id)
    if msg is None:
        return None
    await uow.outbox.add(ChangeKind.DELETE.value, msg.room_id, message_to_payload(msg))
    await uow.commit()
    return msg


async def list_messages(room_id: UUID, uow: UnitOfWork) -> list[Message]:
    return await uow.messages.list_messages(room_id)

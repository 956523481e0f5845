from __future__ import annotations

import uuid

import pytest

from pair_chat.services import message_service
from tests.conftest import ALEX_ID, FakeUoW, make_message


@pytest.fixture
def room_id():
    return uuid.uuid4()


@pytest.mark.asyncio
async def test_create_message_commits_with_outbox(room_id):
    uow = FakeUoW()

    msg = await message_service.create_message(room_id, ALEX_ID, "hello", uow)

    assert msg.content == "hello"
    assert msg.room_id == room_id
    assert uow._committed is True
    assert len(uow.outbox._records) == 1
    record = uow.outbox._records[0]
    assert record["event_type"] == "message.insert"
    assert record["room_id"] == room_id
    assert record["payload"]["id"] == str(msg.id)


@pytest.mark.asyncio
async def test_delete_message_writes_delete_event(room_id):
    uow = FakeUoW()
    row = make_message(room_id=room_id, sender_id=ALEX_ID)
    uow.messages._messages.append(row)

    deleted = await message_service.delete_message(row.id, uow)

    assert deleted == row
    assert uow._committed is True
    assert uow.outbox._records[0]["event_type"] == "message.delete"
    assert await message_service.list_messages(room_id, uow) == []


@pytest.mark.asyncio
async def test_delete_missing_message_is_a_noop():
    uow = FakeUoW()

    assert await message_service.delete_message(uuid.uuid4(), uow) is None
    assert uow._committed is False
    assert uow.outbox._records == []


@pytest.mark.asyncio
async def test_list_messages_filters_by_room(room_id):
    uow = FakeUoW()
    mine = make_message(room_id=room_id)
    uow.messages._messages.extend([mine, make_message(room_id=uuid.uuid4())])

    assert await message_service.list_messages(room_id, uow) == [mine]

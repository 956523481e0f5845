from __future__ import annotations

import asyncio
import uuid

import pytest

from pair_chat.config import SyncConfig
from pair_chat.domain.events import MessageInserted, TypingSignal
from pair_chat.domain.value_objects.enums import SendStatus
from tests.conftest import ALEX_ID, SAM_ID, make_message


@pytest.fixture
async def pair(harness):
    alex = harness.session_for(ALEX_ID)
    sam = harness.session_for(SAM_ID)
    await alex.open()
    await sam.open()
    await alex.drain()
    await sam.drain()
    yield alex, sam
    await alex.aclose()
    await sam.aclose()


@pytest.mark.asyncio
async def test_history_is_seeded_in_order(harness, clock):
    room_id = harness.room.id
    later = make_message(room_id=room_id, content="second", created_at=clock.advance(ms=5))
    earlier = make_message(room_id=room_id, content="first", created_at=clock.advance(ms=-3))
    harness.store.rows = {later.id: later, earlier.id: earlier}
    clock.advance(seconds=1)

    async with harness.session_for(ALEX_ID) as session:
        view = session.view()

    assert [m.content for m in view.messages] == ["first", "second"]
    assert view.unread_count == 0
    assert view.subtitle == "Chat with @sam"


@pytest.mark.asyncio
async def test_send_reaches_both_sides_once(harness, pair, clock):
    alex, sam = pair
    clock.advance(ms=100)

    attempt = await alex.send("hello")
    await alex.drain()
    await sam.drain()

    assert attempt.status is SendStatus.CONFIRMED
    assert [m.content for m in alex.view().messages] == ["hello"]
    assert [m.content for m in sam.view().messages] == ["hello"]
    assert sam.view().unread_badge == "1"
    assert alex.view().unread_count == 0

    await harness.store.redeliver(attempt.message)
    await alex.drain()
    await sam.drain()

    assert len(alex.view().messages) == 1
    assert len(sam.view().messages) == 1
    assert sam.view().unread_count == 1


@pytest.mark.asyncio
async def test_unread_counts_partner_messages_until_focus(harness, pair, clock):
    alex, sam = pair

    for text in ("one", "two", "three"):
        clock.advance(ms=10)
        await sam.send(text)
    own = make_message(room_id=harness.room.id, sender_id=ALEX_ID, created_at=clock.advance(ms=10))
    await harness.store.emit(MessageInserted(room_id=harness.room.id, message=own))
    await alex.drain()

    assert len(alex.view().messages) == 4
    assert alex.view().unread_count == 3

    clock.advance(ms=10)
    alex.focus_gained()
    await alex.drain()

    assert alex.view().unread_count == 0
    assert alex.view().unread_badge == ""


@pytest.mark.asyncio
async def test_local_send_marks_read(pair, clock):
    alex, sam = pair
    clock.advance(ms=10)
    await sam.send("hi")
    await alex.drain()
    assert alex.view().unread_count == 1

    clock.advance(ms=10)
    await alex.send("hey")
    await alex.drain()

    assert alex.view().unread_count == 0


@pytest.mark.asyncio
async def test_failed_send_keeps_draft_and_shows_error(harness, pair):
    alex, _ = pair
    harness.store.fail_insert = True
    alex.draft = "keep me"

    attempt = await alex.send()

    assert attempt.status is SendStatus.FAILED
    view = alex.view()
    assert view.draft == "keep me"
    assert view.error == "Could not send message."
    assert view.messages == ()


@pytest.mark.asyncio
async def test_successful_send_clears_draft(pair, clock):
    alex, _ = pair
    alex.pick_prompt("Would you rather: movie night in or late walk outside?")
    clock.advance(ms=10)

    await alex.send()
    await alex.drain()

    assert alex.view().draft == ""
    assert alex.view().messages[0].content.startswith("Would you rather")


@pytest.mark.asyncio
async def test_presence_and_typing_between_members(pair, clock):
    alex, sam = pair
    assert alex.view().partner_online is True
    assert sam.view().partner_online is True

    await alex.input_changed("h")
    await alex.drain()
    await sam.drain()

    assert sam.view().partner_typing is True
    assert alex.view().partner_typing is False
    assert sam.view().draft == ""
    assert alex.view().draft == "h"

    clock.advance(ms=2001)
    assert sam.view().partner_typing is False


@pytest.mark.asyncio
async def test_delete_own_message(harness, pair, clock):
    alex, sam = pair
    clock.advance(ms=10)
    attempt = await alex.send("oops")
    await alex.drain()
    await sam.drain()

    assert await alex.delete_message(attempt.message.id) is True
    await alex.drain()
    await sam.drain()

    assert alex.view().messages == ()
    assert sam.view().messages == ()
    assert attempt.message.id not in harness.store.rows


@pytest.mark.asyncio
async def test_cannot_delete_partner_message(harness, pair, clock):
    alex, sam = pair
    clock.advance(ms=10)
    attempt = await sam.send("mine")
    await alex.drain()

    assert await alex.delete_message(attempt.message.id) is False
    assert alex.view().error == "Only your own messages can be deleted"
    assert attempt.message.id in harness.store.rows


@pytest.mark.asyncio
async def test_failed_delete_keeps_row(harness, pair, clock):
    alex, _ = pair
    clock.advance(ms=10)
    attempt = await alex.send("stay")
    await alex.drain()
    harness.store.fail_delete = True

    assert await alex.delete_message(attempt.message.id) is False
    await alex.drain()

    assert [m.content for m in alex.view().messages] == ["stay"]
    assert alex.view().error == "Could not delete message."


@pytest.mark.asyncio
async def test_fetch_failure_shows_banner_but_stays_live(harness, clock):
    harness.store.fail_fetch = True

    async with harness.session_for(ALEX_ID) as session:
        assert session.view().error == "Could not load messages."
        assert session.view().live is True

        clock.advance(ms=10)
        await harness.store.emit(MessageInserted(
            room_id=harness.room.id,
            message=make_message(room_id=harness.room.id, created_at=clock.now()),
        ))
        await session.drain()

        assert len(session.view().messages) == 1


@pytest.mark.asyncio
async def test_subscription_loss_marks_not_live(harness, pair):
    alex, sam = pair

    await harness.store.lose(harness.room.id, ConnectionError("gone"))
    await alex.drain()
    await sam.drain()

    assert alex.view().live is False
    assert sam.view().live is False


@pytest.mark.asyncio
async def test_subscribe_failure_opens_without_live_feed(harness):
    harness.store.fail_subscribe = True

    async with harness.session_for(ALEX_ID) as session:
        assert session.view().live is False


@pytest.mark.asyncio
async def test_events_after_close_are_dropped(harness, pair, clock):
    alex, sam = pair
    room_id = harness.room.id
    alex.close()

    assert harness.store.subscriber_count(room_id) == 1
    alex.post(MessageInserted(room_id=room_id, message=make_message(room_id=room_id)))
    alex.post(TypingSignal(room_id=room_id, user_id=SAM_ID))

    clock.advance(ms=10)
    await sam.send("after")
    await sam.drain()

    assert alex.view().messages == ()
    assert alex.view().partner_typing is False
    assert alex.closed is True


@pytest.mark.asyncio
async def test_close_during_open_releases_subscriptions(harness):
    session = harness.session_for(ALEX_ID)

    original = harness.store.list_messages

    async def _closing_fetch(room_id):
        session.close()
        return await original(room_id)

    harness.store.list_messages = _closing_fetch
    await session.open()

    assert harness.store.subscriber_count(harness.room.id) == 0
    assert session.closed is True
    await session.aclose()


@pytest.mark.asyncio
async def test_views_are_published_on_change(harness, pair, clock):
    alex, _ = pair
    before = len(harness.views[ALEX_ID])
    clock.advance(ms=10)

    await alex.send("ping")
    await alex.drain()

    assert len(harness.views[ALEX_ID]) > before
    assert harness.views[ALEX_ID][-1].messages[-1].content == "ping"


@pytest.mark.asyncio
async def test_foreign_room_feed_event_is_ignored(pair):
    alex, _ = pair
    other = uuid.uuid4()

    alex.post(MessageInserted(room_id=other, message=make_message(room_id=other)))
    await alex.drain()

    assert alex.view().messages == ()


@pytest.mark.asyncio
async def test_partner_leaving_is_pushed_as_offline(harness, pair, clock):
    alex, sam = pair
    assert harness.views[ALEX_ID][-1].partner_online is True

    await sam.aclose()
    clock.advance(seconds=25)
    await alex.presence.announce()
    await alex.drain()

    assert alex.view().partner_online is False
    assert harness.views[ALEX_ID][-1].partner_online is False


@pytest.mark.asyncio
async def test_background_send_ignores_second_submit_while_pending(harness, pair, clock):
    alex, sam = pair
    harness.store.insert_gate = asyncio.Event()

    first = alex.submit("one")
    await asyncio.sleep(0)
    assert alex.view().sending is True

    second = alex.submit("two")
    assert await second is None

    harness.store.insert_gate.set()
    attempt = await first
    await alex.drain()
    await sam.drain()

    assert attempt.status is SendStatus.CONFIRMED
    assert [m.content for m in harness.store.inserted] == ["one"]
    assert [m.content for m in sam.view().messages] == ["one"]


@pytest.mark.asyncio
async def test_close_cancels_background_send(harness, pair):
    alex, _ = pair
    harness.store.insert_gate = asyncio.Event()

    task = alex.submit("never")
    await asyncio.sleep(0)
    await alex.aclose()

    assert task.cancelled()
    assert harness.store.inserted == []
    assert alex.submit("late") is None


def test_presence_heartbeat_follows_configured_window(harness):
    harness.config = SyncConfig(online_window_seconds=6.0)

    session = harness.session_for(ALEX_ID)

    assert session.presence.heartbeat_interval == 3.0

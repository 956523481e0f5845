"""Shared test fixtures."""
from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID

import pytest

from pair_chat.application.dto.principal import Principal
from pair_chat.application.dto.session import SessionContext
from pair_chat.application.exceptions import ChannelError, FetchError, SendError, SubscriptionLoss
from pair_chat.application.repositories.outbox import OutboxRecord
from pair_chat.config import SyncConfig
from pair_chat.domain.entities.message import Message
from pair_chat.domain.entities.room import Room
from pair_chat.domain.events import MessageDeleted, MessageInserted
from pair_chat.services.room_session import RoomSession, RoomTransport

T0 = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)

ALEX_ID = UUID("00000000-0000-0000-0000-00000000000a")
SAM_ID = UUID("00000000-0000-0000-0000-00000000000b")


class FakeClock:
    def __init__(self, start: datetime = T0) -> None:
        self._now = start

    def now(self) -> datetime:
        return self._now

    def advance(self, *, ms: int = 0, seconds: float = 0) -> datetime:
        self._now += timedelta(milliseconds=ms, seconds=seconds)
        return self._now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def alex() -> Principal:
    return Principal(user_id=ALEX_ID, email="alex@example.com")


@pytest.fixture
def sam() -> Principal:
    return Principal(user_id=SAM_ID, email="sam@example.com")


def make_room(*, room_id: UUID | None = None, user_a: UUID = ALEX_ID, user_b: UUID = SAM_ID) -> Room:
    return Room(id=room_id or uuid.uuid4(), user_a=user_a, user_b=user_b, created_at=T0)


def make_message(
    *,
    room_id: UUID,
    sender_id: UUID = SAM_ID,
    content: str = "hello",
    created_at: datetime = T0,
    message_id: UUID | None = None,
) -> Message:
    return Message(
        id=message_id or uuid.uuid4(),
        room_id=room_id,
        sender_id=sender_id,
        content=content,
        created_at=created_at,
    )


# -- transport fakes --------------------------------------------------------


class _Handle:
    def __init__(self, registry: list, entry: Any) -> None:
        self._registry = registry
        self._entry = entry
        self.closed = False

    def close(self) -> None:
        self.closed = True
        if self._entry in self._registry:
            self._registry.remove(self._entry)


class InMemoryMessageStore:
    """Message store plus change feed, shared by both members of a room.

    With ``auto_feed`` each insert/delete is fanned out to subscribers
    before the call returns, so the author sees its own row twice.
    """

    def __init__(self, clock: FakeClock, *, auto_feed: bool = True) -> None:
        self.clock = clock
        self.auto_feed = auto_feed
        self.rows: dict[UUID, Message] = {}
        self.fail_fetch = False
        self.fail_insert = False
        self.fail_delete = False
        self.fail_subscribe = False
        self.insert_gate: asyncio.Event | None = None
        self.inserted: list[Message] = []
        self._subscribers: dict[UUID, list[tuple[Any, Any]]] = {}

    def subscriber_count(self, room_id: UUID) -> int:
        return len(self._subscribers.get(room_id, []))

    async def list_messages(self, room_id: UUID) -> list[Message]:
        if self.fail_fetch:
            raise FetchError("Could not load messages.")
        rows = [m for m in self.rows.values() if m.room_id == room_id]
        return sorted(rows, key=lambda m: (m.created_at, str(m.id)))

    async def insert(self, room_id: UUID, sender_id: UUID, content: str) -> Message:
        if self.insert_gate is not None:
            await self.insert_gate.wait()
        if self.fail_insert:
            raise SendError("Could not send message.")
        row = make_message(
            room_id=room_id, sender_id=sender_id, content=content, created_at=self.clock.now(),
        )
        self.rows[row.id] = row
        self.inserted.append(row)
        if self.auto_feed:
            await self.emit(MessageInserted(room_id=room_id, message=row))
        return row

    async def delete(self, message_id: UUID) -> None:
        if self.fail_delete:
            raise SendError("Could not delete message.")
        row = self.rows.pop(message_id, None)
        if row is not None and self.auto_feed:
            await self.emit(MessageDeleted(room_id=row.room_id, message_id=row.id))

    async def subscribe(self, room_id: UUID, on_change: Any, on_loss: Any) -> _Handle:
        if self.fail_subscribe:
            raise SubscriptionLoss("Could not subscribe")
        registry = self._subscribers.setdefault(room_id, [])
        entry = (on_change, on_loss)
        registry.append(entry)
        return _Handle(registry, entry)

    async def emit(self, event: MessageInserted | MessageDeleted) -> None:
        for on_change, _ in list(self._subscribers.get(event.room_id, [])):
            await on_change(event)

    async def redeliver(self, row: Message) -> None:
        await self.emit(MessageInserted(room_id=row.room_id, message=row))

    async def lose(self, room_id: UUID, exc: BaseException | None = None) -> None:
        for _, on_loss in list(self._subscribers.get(room_id, [])):
            await on_loss(exc)


class BroadcastHub:
    """In-process stand-in for a Redis Pub/Sub server."""

    def __init__(self) -> None:
        self._subscribers: dict[str, list[Any]] = {}
        self.published: list[tuple[str, str, dict[str, Any]]] = []
        self.fail_publish = False

    def channel(self, name: str) -> FakeBroadcastChannel:
        return FakeBroadcastChannel(self, name)


@dataclass
class FakeBroadcastChannel:
    hub: BroadcastHub
    name: str

    async def publish(self, event: str, payload: dict[str, Any]) -> None:
        if self.hub.fail_publish:
            raise ChannelError(f"Could not publish on {self.name}")
        self.hub.published.append((self.name, event, payload))
        for callback in list(self.hub._subscribers.get(self.name, [])):
            await callback(event, dict(payload))

    async def subscribe(self, callback: Any) -> _Handle:
        registry = self.hub._subscribers.setdefault(self.name, [])
        registry.append(callback)
        return _Handle(registry, callback)


class PresenceHub:
    def __init__(self) -> None:
        self.state: dict[str, dict[str, dict[str, Any]]] = {}
        self._listeners: dict[str, list[Any]] = {}

    def channel(self, name: str) -> FakePresenceChannel:
        return FakePresenceChannel(self, name)


@dataclass
class FakePresenceChannel:
    hub: PresenceHub
    name: str

    def snapshot(self) -> dict[str, dict[str, Any]]:
        return {k: dict(v) for k, v in self.hub.state.get(self.name, {}).items()}

    async def join(self, key: str, on_sync: Any) -> _Handle:
        registry = self.hub._listeners.setdefault(self.name, [])
        registry.append(on_sync)
        await on_sync(self.snapshot())
        return _Handle(registry, on_sync)

    async def track(self, key: str, meta: dict[str, Any]) -> None:
        self.hub.state.setdefault(self.name, {})[key] = dict(meta)
        for on_sync in list(self.hub._listeners.get(self.name, [])):
            await on_sync(self.snapshot())


@dataclass
class RoomHarness:
    """Everything two members of one room share."""

    clock: FakeClock
    room: Room
    store: InMemoryMessageStore
    broadcasts: BroadcastHub = field(default_factory=BroadcastHub)
    presence: PresenceHub = field(default_factory=PresenceHub)
    config: SyncConfig = field(default_factory=SyncConfig)
    views: dict[UUID, list[Any]] = field(default_factory=dict)

    def transport(self, room_id: UUID | None = None) -> RoomTransport:
        room_id = room_id or self.room.id
        return RoomTransport(
            store=self.store,
            typing=self.broadcasts.channel(f"typing:{room_id}"),
            presence=self.presence.channel(f"presence:{room_id}"),
        )

    def context_for(self, user_id: UUID, room: Room | None = None) -> SessionContext:
        room = room or self.room
        return SessionContext(
            local_id=user_id,
            room_id=room.id,
            partner_id=room.partner_of(user_id),
            partner_username="sam" if user_id == ALEX_ID else "alex",
        )

    def session_for(self, user_id: UUID) -> RoomSession:
        views = self.views.setdefault(user_id, [])

        async def _on_view(view: Any) -> None:
            views.append(view)

        return RoomSession(
            self.context_for(user_id),
            self.transport(),
            clock=self.clock,
            config=self.config,
            on_view=_on_view,
        )

    def session_factory(self, context: SessionContext) -> RoomSession:
        return RoomSession(context, self.transport(context.room_id), clock=self.clock, config=self.config)


@pytest.fixture
def store(clock) -> InMemoryMessageStore:
    return InMemoryMessageStore(clock)


@pytest.fixture
def harness(clock, store) -> RoomHarness:
    return RoomHarness(clock=clock, room=make_room(), store=store)


# -- repository / unit-of-work fakes ---------------------------------------


@dataclass
class FakeRoomReader:
    rooms: list[Room] = field(default_factory=list)
    usernames: dict[UUID, str] = field(default_factory=dict)

    async def get_for_user(self, user_id: UUID) -> Room | None:
        return next((r for r in self.rooms if r.has_member(user_id)), None)

    async def get_username(self, user_id: UUID) -> str | None:
        return self.usernames.get(user_id)


@dataclass
class FakeMessageReader:
    _messages: list[Message] = field(default_factory=list)

    async def list_messages(self, room_id: UUID) -> list[Message]:
        return [m for m in self._messages if m.room_id == room_id]


@dataclass
class FakeMessageWriter:
    _reader: FakeMessageReader

    async def create(self, room_id: UUID, sender_id: UUID, content: str) -> Message:
        msg = make_message(
            room_id=room_id, sender_id=sender_id, content=content,
            created_at=datetime.now(timezone.utc),
        )
        self._reader._messages.append(msg)
        return msg

    async def delete(self, message_id: UUID) -> Message | None:
        msg = next((m for m in self._reader._messages if m.id == message_id), None)
        if msg is not None:
            self._reader._messages.remove(msg)
        return msg


@dataclass
class FakeRoomWriter:
    _reader: FakeRoomReader

    async def create(self, room: Room) -> Room:
        self._reader.rooms.append(room)
        return room

    async def set_username(self, user_id: UUID, username: str) -> None:
        self._reader.usernames[user_id] = username


@dataclass
class FakeOutboxWriter:
    _records: list[dict[str, Any]] = field(default_factory=list)
    pending: list[OutboxRecord] = field(default_factory=list)
    sent: list[int] = field(default_factory=list)
    failed: list[int] = field(default_factory=list)

    async def add(self, event_type: str, room_id: UUID, payload: dict[str, Any]) -> None:
        self._records.append({"event_type": event_type, "room_id": room_id, "payload": payload})

    async def fetch_pending(self, batch_size: int) -> list[OutboxRecord]:
        return self.pending[:batch_size]

    async def mark_sent(self, ids: list[int]) -> None:
        self.sent.extend(ids)

    async def mark_failed(self, record_id: int, next_retry_at: datetime) -> None:
        self.failed.append(record_id)


@dataclass
class FakeUoW:
    """In-memory UoW for unit tests."""
    rooms: FakeRoomReader = field(default_factory=FakeRoomReader)
    rooms_w: FakeRoomWriter | None = None
    messages: FakeMessageReader = field(default_factory=FakeMessageReader)
    messages_w: FakeMessageWriter | None = None
    outbox: FakeOutboxWriter = field(default_factory=FakeOutboxWriter)
    _committed: bool = False

    def __post_init__(self) -> None:
        if self.rooms_w is None:
            self.rooms_w = FakeRoomWriter(self.rooms)
        if self.messages_w is None:
            self.messages_w = FakeMessageWriter(self.messages)

    async def flush(self) -> None:
        pass

    async def commit(self) -> None:
        self._committed = True

    async def rollback(self) -> None:
        pass

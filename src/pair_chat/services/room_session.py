"""One active room: owns the event queue and every piece of room state.

Transport callbacks never touch state directly. They post events, and a
single consumer task applies them one at a time, so the message list,
typing state, presence map and unread count are never mutated
concurrently.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from types import TracebackType
from typing import Any, Callable, Coroutine, Self
from uuid import UUID

from pair_chat.application.dto.session import SessionContext
from pair_chat.application.dto.view import ChatView
from pair_chat.application.exceptions import ChatError, FetchError, ForbiddenError, SendError
from pair_chat.application.policies.permissions import assert_own_message
from pair_chat.application.ports.channels import BroadcastChannel, PresenceChannel
from pair_chat.application.ports.clock import Clock, SystemClock
from pair_chat.application.ports.store import MessageStore
from pair_chat.application.ports.subscription import Subscription
from pair_chat.config import SyncConfig
from pair_chat.domain.entities.message import Message
from pair_chat.domain.entities.outgoing import OutgoingMessage
from pair_chat.domain.events import (
    FocusGained,
    MessageConfirmed,
    MessageDeleted,
    MessageInserted,
    MessageRemovedLocally,
    PresenceSynced,
    RoomEvent,
    SubscriptionLost,
    TypingExpired,
    TypingSignal,
)
from pair_chat.domain.value_objects.enums import SendStatus
from pair_chat.services.message_sync import MessageStoreSynchronizer
from pair_chat.services.presence_service import PresenceTracker
from pair_chat.services.send_service import SendPipeline
from pair_chat.services.typing_service import TYPING_EVENT, TypingCoordinator, parse_typing_payload
from pair_chat.services.unread_service import UnreadCounter

logger = logging.getLogger(__name__)

OnViewCallback = Callable[[ChatView], Coroutine[Any, Any, None]]


@dataclass(frozen=True, slots=True)
class RoomTransport:
    """The three room-scoped collaborators a session talks to."""

    store: MessageStore
    typing: BroadcastChannel
    presence: PresenceChannel


class RoomSession:
    def __init__(
        self,
        context: SessionContext,
        transport: RoomTransport,
        *,
        clock: Clock | None = None,
        config: SyncConfig | None = None,
        on_view: OnViewCallback | None = None,
    ) -> None:
        self.context = context
        self._transport = transport
        self._clock = clock or SystemClock()
        self._config = config or SyncConfig()
        self._on_view = on_view
        self._queue: asyncio.Queue[RoomEvent] = asyncio.Queue()

        room_id, local_id = context.room_id, context.local_id
        self.unread = UnreadCounter(
            room_id, local_id, self._clock, badge_cap=self._config.unread_badge_cap,
        )
        self.timeline = MessageStoreSynchronizer(room_id, on_accepted=self.unread.on_message)
        self.typing = TypingCoordinator(
            room_id,
            local_id,
            transport.typing,
            self._clock,
            idle_ms=self._config.typing_idle_ms,
            throttle_ms=self._config.typing_throttle_ms,
            on_expire=self.post,
        )
        self.presence = PresenceTracker(
            room_id,
            local_id,
            transport.presence,
            self._clock,
            window_seconds=self._config.online_window_seconds,
        )
        self.sender = SendPipeline(
            room_id,
            local_id,
            transport.store,
            on_confirmed=self._on_send_confirmed,
            timeout_seconds=self._config.send_timeout_seconds,
        )

        self.draft = ""
        self.live = True
        self.banner: str | None = None
        self.inline_error: str | None = None

        self._feed: Subscription | None = None
        self._typing_sub: Subscription | None = None
        self._consumer: asyncio.Task[None] | None = None
        self._send_tasks: set[asyncio.Task[OutgoingMessage | None]] = set()
        self._opened = False
        self._closed = False

    @property
    def room_id(self) -> UUID:
        return self.context.room_id

    @property
    def closed(self) -> bool:
        return self._closed

    async def __aenter__(self) -> Self:
        await self.open()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def open(self) -> None:
        """Subscribe the feed, seed history, join typing and presence.

        The feed is subscribed before the history fetch; events arriving
        meanwhile wait in the queue and are merged after the seed, where
        id dedup absorbs any overlap with the snapshot.
        """
        if self._opened:
            return
        self._opened = True
        store = self._transport.store

        try:
            self._feed = await store.subscribe(self.room_id, self._on_change, self._on_feed_loss)
        except ChatError as exc:
            logger.warning("Message feed unavailable for room %s: %s", self.room_id, exc.detail)
            self.live = False
        if self._closed:
            self._release()
            return

        try:
            rows = await store.list_messages(self.room_id)
        except FetchError as exc:
            logger.warning("History load failed for room %s: %s", self.room_id, exc.detail)
            self.banner = exc.detail or "Could not load messages."
        else:
            self.timeline.seed(rows)
            self.unread.mark_read()
        if self._closed:
            self._release()
            return

        try:
            self._typing_sub = await self._transport.typing.subscribe(self._on_typing)
        except ChatError as exc:
            logger.warning("Typing channel unavailable for room %s: %s", self.room_id, exc.detail)
        if self._closed:
            self._release()
            return

        try:
            await self.presence.join(self._on_presence)
        except ChatError as exc:
            logger.warning("Presence channel unavailable for room %s: %s", self.room_id, exc.detail)
        if self._closed:
            self._release()
            return

        self._consumer = asyncio.create_task(self._consume(), name=f"room-session-{self.room_id}")
        logger.info("Room session opened: room=%s user=%s", self.room_id, self.context.local_id)
        await self._publish_view()

    def post(self, event: RoomEvent) -> None:
        """Queue an event for the consumer. Dropped once the session is closed."""
        if self._closed:
            logger.debug("Dropping %s after close of room %s", type(event).__name__, self.room_id)
            return
        self._queue.put_nowait(event)

    async def drain(self) -> None:
        """Wait until every queued event has been applied."""
        await self._queue.join()

    async def send(self, text: str | None = None) -> OutgoingMessage | None:
        attempt = await self.sender.submit(self.draft if text is None else text)
        if attempt is None:
            return None
        if attempt.status is SendStatus.CONFIRMED:
            self.draft = ""
            self.inline_error = None
        else:
            self.draft = attempt.draft
            self.inline_error = attempt.error
            await self._publish_view()
        return attempt

    def submit(self, text: str | None = None) -> asyncio.Task[OutgoingMessage | None] | None:
        """Run :meth:`send` as a task so the caller can keep handling input.

        The task is cancelled when the session closes.
        """
        if self._closed:
            return None
        task = asyncio.create_task(self.send(text), name=f"room-send-{self.room_id}")
        self._send_tasks.add(task)
        task.add_done_callback(self._on_send_done)
        return task

    async def input_changed(self, text: str) -> None:
        self.draft = text
        await self.typing.notify_local_input()

    def pick_prompt(self, text: str) -> None:
        self.draft = text

    def focus_gained(self) -> None:
        self.post(FocusGained(room_id=self.room_id))

    async def delete_message(self, message_id: UUID) -> bool:
        """Delete one of the local user's own messages."""
        message = next((m for m in self.timeline.messages if m.id == message_id), None)
        try:
            assert_own_message(self.context.local_id, message)
            await self._transport.store.delete(message_id)
        except (ForbiddenError, SendError) as exc:
            logger.warning("Delete of %s refused in room %s: %s", message_id, self.room_id, exc.detail)
            self.inline_error = exc.detail
            await self._publish_view()
            return False
        self.post(MessageRemovedLocally(room_id=self.room_id, message_id=message_id))
        return True

    def view(self) -> ChatView:
        return ChatView(
            room_id=self.room_id,
            local_id=self.context.local_id,
            subtitle=self.context.subtitle,
            messages=self.timeline.messages,
            draft=self.draft,
            sending=self.sender.pending is not None,
            partner_online=self.presence.is_online(),
            partner_typing=self.typing.is_typing(),
            unread_count=self.unread.count,
            unread_badge=self.unread.badge,
            live=self.live,
            error=self.inline_error or self.banner,
        )

    def close(self) -> None:
        """Tear the session down synchronously; late events are dropped."""
        if self._closed:
            return
        self._closed = True
        self._release()
        if self._consumer is not None:
            self._consumer.cancel()
        for task in self._send_tasks:
            task.cancel()
        logger.info("Room session closed: room=%s", self.room_id)

    async def aclose(self) -> None:
        self.close()
        await self.presence.wait_closed()
        if self._send_tasks:
            await asyncio.gather(*self._send_tasks, return_exceptions=True)
        if self._consumer is not None:
            try:
                await self._consumer
            except asyncio.CancelledError:
                pass
            self._consumer = None

    def _release(self) -> None:
        if self._feed is not None:
            self._feed.close()
            self._feed = None
        if self._typing_sub is not None:
            self._typing_sub.close()
            self._typing_sub = None
        self.typing.close()
        self.presence.close()

    async def _consume(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                if self._dispatch(event):
                    await self._publish_view()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Failed to apply %s in room %s", type(event).__name__, self.room_id)
            finally:
                self._queue.task_done()

    def _dispatch(self, event: RoomEvent) -> bool:
        if isinstance(event, (MessageInserted, MessageDeleted, MessageRemovedLocally)):
            return self.timeline.apply(event)
        if isinstance(event, MessageConfirmed):
            self.timeline.apply(event)
            self.unread.mark_read()
            return True
        if isinstance(event, TypingSignal):
            return self.typing.on_signal(event)
        if isinstance(event, TypingExpired):
            return self.typing.on_expired(event)
        if isinstance(event, PresenceSynced):
            return self.presence.on_sync(event)
        if isinstance(event, FocusGained):
            self.unread.mark_read()
            return True
        if isinstance(event, SubscriptionLost):
            logger.warning(
                "Lost %s subscription for room %s: %s", event.source, self.room_id, event.reason,
            )
            if event.source == "messages":
                self.live = False
            return True
        raise TypeError(f"unsupported event {type(event).__name__}")

    async def _publish_view(self) -> None:
        if self._on_view is None or self._closed:
            return
        try:
            await self._on_view(self.view())
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("View listener failed for room %s", self.room_id)

    async def _on_change(self, event: MessageInserted | MessageDeleted) -> None:
        self.post(event)

    async def _on_feed_loss(self, exc: BaseException | None) -> None:
        self.post(SubscriptionLost(room_id=self.room_id, source="messages", reason=str(exc or "")))

    async def _on_typing(self, event: str, payload: dict[str, Any]) -> None:
        if event == TYPING_EVENT:
            self.post(parse_typing_payload(self.room_id, payload))

    async def _on_presence(self, snapshot: dict[str, dict[str, Any]]) -> None:
        self.post(PresenceSynced(room_id=self.room_id, snapshot=snapshot))

    def _on_send_confirmed(self, row: Message) -> None:
        self.post(MessageConfirmed(room_id=self.room_id, message=row))

    def _on_send_done(self, task: asyncio.Task[OutgoingMessage | None]) -> None:
        self._send_tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Background send failed in room %s", self.room_id, exc_info=exc)

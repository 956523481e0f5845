"""Canonical, ordered, id-deduplicated message list of one room."""
from __future__ import annotations

import bisect
import logging
from typing import Callable, Iterable
from uuid import UUID

from pair_chat.domain.entities.message import Message
from pair_chat.domain.events import (
    MessageConfirmed,
    MessageDeleted,
    MessageInserted,
    MessageRemovedLocally,
)

logger = logging.getLogger(__name__)

OnAcceptedCallback = Callable[[Message], None]


def timeline_key(message: Message) -> tuple:
    return (message.created_at, str(message.id))


class MessageStoreSynchronizer:
    """Merges the history snapshot, the change feed and local appends.

    Every row is keyed by id: the first copy of an id wins and any later
    copy (feed redelivery, optimistic append racing the feed) is dropped.
    Rows stay sorted by ``created_at``, ties broken by id.
    """

    def __init__(
        self,
        room_id: UUID,
        *,
        on_accepted: OnAcceptedCallback | None = None,
    ) -> None:
        self._room_id = room_id
        self._on_accepted = on_accepted
        self._messages: list[Message] = []
        self._ids: set[UUID] = set()

    @property
    def room_id(self) -> UUID:
        return self._room_id

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    def __contains__(self, message_id: object) -> bool:
        return message_id in self._ids

    def __len__(self) -> int:
        return len(self._messages)

    def seed(self, rows: Iterable[Message]) -> None:
        """Replace the list with a fresh history snapshot."""
        self._messages = []
        self._ids = set()
        for row in rows:
            if row.room_id != self._room_id or row.id in self._ids:
                continue
            self._ids.add(row.id)
            self._messages.append(row)
        self._messages.sort(key=timeline_key)
        logger.debug("Seeded room %s with %d messages", self._room_id, len(self._messages))

    def apply(
        self,
        event: MessageInserted | MessageDeleted | MessageConfirmed | MessageRemovedLocally,
    ) -> bool:
        """Apply one feed or local event. Return True if the list changed."""
        if event.room_id != self._room_id:
            logger.debug("Ignoring event for foreign room %s", event.room_id)
            return False
        if isinstance(event, MessageInserted):
            return self._merge(event.message)
        if isinstance(event, MessageConfirmed):
            return self.reconcile(event.message)
        if isinstance(event, (MessageDeleted, MessageRemovedLocally)):
            return self.remove_local(event.message_id)
        raise TypeError(f"unsupported event {type(event).__name__}")

    def append(self, row: Message) -> bool:
        """Optimistically add a locally authored row."""
        return self._merge(row)

    def reconcile(self, row: Message) -> bool:
        """Record the durable row of a local send.

        A row already present under the same id is replaced in place by
        the durable copy, without a second notification.
        """
        if row.room_id != self._room_id:
            return False
        if row.id not in self._ids:
            return self._merge(row)
        idx = self._index_of(row.id)
        if self._messages[idx] == row:
            return False
        del self._messages[idx]
        bisect.insort(self._messages, row, key=timeline_key)
        return True

    def remove_local(self, message_id: UUID) -> bool:
        if message_id not in self._ids:
            return False
        del self._messages[self._index_of(message_id)]
        self._ids.discard(message_id)
        return True

    def _merge(self, row: Message) -> bool:
        if row.room_id != self._room_id:
            return False
        if row.id in self._ids:
            logger.debug("Discarding duplicate message %s", row.id)
            return False
        self._ids.add(row.id)
        bisect.insort(self._messages, row, key=timeline_key)
        if self._on_accepted is not None:
            self._on_accepted(row)
        return True

    def _index_of(self, message_id: UUID) -> int:
        for idx, message in enumerate(self._messages):
            if message.id == message_id:
                return idx
        raise KeyError(message_id)

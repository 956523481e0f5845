from __future__ import annotations

import logging
from datetime import datetime
from uuid import UUID

from pair_chat.application.ports.clock import Clock
from pair_chat.domain.entities.message import Message
from pair_chat.domain.entities.read_marker import ReadMarker

logger = logging.getLogger(__name__)


def format_badge(count: int, cap: int = 9) -> str:
    if count <= 0:
        return ""
    if count > cap:
        return f"{cap}+"
    return str(count)


class UnreadCounter:
    """Counts partner messages newer than the local read marker."""

    def __init__(self, room_id: UUID, local_id: UUID, clock: Clock, *, badge_cap: int = 9) -> None:
        self._local_id = local_id
        self._clock = clock
        self._badge_cap = badge_cap
        self._marker = ReadMarker(room_id=room_id, last_read_at=clock.now())

    @property
    def count(self) -> int:
        return self._marker.unread_count

    @property
    def last_read_at(self) -> datetime:
        return self._marker.last_read_at

    @property
    def badge(self) -> str:
        return format_badge(self._marker.unread_count, self._badge_cap)

    def mark_read(self) -> None:
        """History loaded, window focused or local send confirmed."""
        self._marker = ReadMarker(
            room_id=self._marker.room_id,
            last_read_at=self._clock.now(),
            unread_count=0,
        )
        logger.debug("Room %s marked read at %s", self._marker.room_id, self._marker.last_read_at)

    def on_message(self, message: Message) -> bool:
        if message.sender_id == self._local_id:
            return False
        if message.created_at <= self._marker.last_read_at:
            return False
        self._marker = ReadMarker(
            room_id=self._marker.room_id,
            last_read_at=self._marker.last_read_at,
            unread_count=self._marker.unread_count + 1,
        )
        return True

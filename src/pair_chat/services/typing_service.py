"""Typing indicator: local emit with throttling, remote decay-to-idle."""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Any, Callable
from uuid import UUID

from pair_chat.application.exceptions import ChatError
from pair_chat.application.ports.channels import BroadcastChannel
from pair_chat.application.ports.clock import Clock
from pair_chat.domain.entities.typing_state import TypingState
from pair_chat.domain.events import TypingExpired, TypingSignal
from pair_chat.domain.value_objects.enums import TypingPhase

logger = logging.getLogger(__name__)

TYPING_EVENT = "typing"

OnExpireCallback = Callable[[TypingExpired], None]


def parse_typing_payload(room_id: UUID, payload: dict[str, Any]) -> TypingSignal:
    raw = payload.get("userId", payload.get("user_id"))
    try:
        user_id = UUID(str(raw)) if raw is not None else None
    except ValueError:
        user_id = None
    return TypingSignal(room_id=room_id, user_id=user_id)


class TypingCoordinator:
    """Idle/Typing state machine of the partner, plus the local emitter.

    Each remote signal pushes the expiry to ``now + idle``; a timer posts
    ``TypingExpired`` for that deadline and only the latest deadline
    flips the state back to idle.
    """

    def __init__(
        self,
        room_id: UUID,
        local_id: UUID,
        channel: BroadcastChannel,
        clock: Clock,
        *,
        idle_ms: int = 2000,
        throttle_ms: int = 400,
        on_expire: OnExpireCallback | None = None,
    ) -> None:
        self._room_id = room_id
        self._local_id = local_id
        self._channel = channel
        self._clock = clock
        self._idle = timedelta(milliseconds=idle_ms)
        self._throttle = timedelta(milliseconds=throttle_ms)
        self._on_expire = on_expire
        self._state = TypingState()
        self._timer: asyncio.TimerHandle | None = None
        self._last_emit_at: datetime | None = None

    @property
    def state(self) -> TypingState:
        return self._state

    @property
    def phase(self) -> TypingPhase:
        return TypingPhase.TYPING if self._state.remote_typing else TypingPhase.IDLE

    def is_typing(self, at: datetime | None = None) -> bool:
        return self._state.active_at(at or self._clock.now())

    async def notify_local_input(self) -> bool:
        """Broadcast that the local user is typing. Return False if throttled."""
        now = self._clock.now()
        if self._last_emit_at is not None and now - self._last_emit_at < self._throttle:
            return False
        self._last_emit_at = now
        try:
            await self._channel.publish(TYPING_EVENT, {"userId": str(self._local_id)})
        except ChatError as exc:
            logger.warning("Typing broadcast failed in room %s: %s", self._room_id, exc.detail)
            return False
        return True

    def on_signal(self, event: TypingSignal) -> bool:
        if event.room_id != self._room_id:
            return False
        if event.user_id is None or event.user_id == self._local_id:
            logger.debug("Dropping own or anonymous typing echo in room %s", self._room_id)
            return False
        was_typing = self._state.remote_typing
        deadline = self._clock.now() + self._idle
        self._state = TypingState(remote_typing=True, expires_at=deadline)
        self._restart_timer(deadline)
        return not was_typing

    def on_expired(self, event: TypingExpired) -> bool:
        if event.room_id != self._room_id or not self._state.remote_typing:
            return False
        if self._state.expires_at != event.deadline:
            return False
        self._state = TypingState()
        return True

    def close(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._state = TypingState()

    def _restart_timer(self, deadline: datetime) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._on_expire is None:
            return
        loop = asyncio.get_running_loop()
        delay = self._idle.total_seconds()
        self._timer = loop.call_later(
            delay, self._on_expire, TypingExpired(room_id=self._room_id, deadline=deadline)
        )

"""Heartbeat-based online detection for the two members of a room."""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Any
from uuid import UUID

from pair_chat.application.ports.channels import OnSyncCallback, PresenceChannel
from pair_chat.application.ports.clock import Clock
from pair_chat.application.ports.subscription import Subscription
from pair_chat.domain.entities.presence import PresenceState
from pair_chat.domain.events import PresenceSynced

logger = logging.getLogger(__name__)


def _stamp(meta: dict[str, Any]) -> Any:
    return meta.get("updatedAt", meta.get("updated_at"))


def _parse_seen_at(meta: dict[str, Any], fallback: datetime) -> datetime:
    raw = _stamp(meta)
    if isinstance(raw, str):
        try:
            raw = datetime.fromisoformat(raw)
        except ValueError:
            return fallback
    if isinstance(raw, datetime) and raw.tzinfo is not None:
        return min(raw, fallback)
    return fallback


class PresenceTracker:
    """Announces the local member and derives ``online`` from snapshots.

    The partner counts as online while at least two distinct keys carry a
    heartbeat younger than the window. Nothing is sent on leave; observers
    infer offline once the heartbeat ages out.

    A key's age is measured on the local clock: a changed ``updatedAt``
    stamps the receive time, an unchanged one keeps the previous sighting.
    Only a key seen for the first time trusts the sender's stamp, capped
    at now.
    """

    def __init__(
        self,
        room_id: UUID,
        local_id: UUID,
        channel: PresenceChannel,
        clock: Clock,
        *,
        window_seconds: float = 20.0,
    ) -> None:
        self._room_id = room_id
        self._local_id = local_id
        self._channel = channel
        self._clock = clock
        self._window = timedelta(seconds=window_seconds)
        self._state = PresenceState()
        self._stamps: dict[str, Any] = {}
        self._online = False
        self._subscription: Subscription | None = None
        self._heartbeat_task: asyncio.Task[None] | None = None

    @property
    def key(self) -> str:
        return str(self._local_id)

    @property
    def heartbeat_interval(self) -> float:
        return self._window.total_seconds() / 2

    @property
    def state(self) -> PresenceState:
        return self._state

    def is_online(self, at: datetime | None = None) -> bool:
        return len(self._state.live_keys(at or self._clock.now(), self._window)) >= 2

    async def join(self, on_sync: OnSyncCallback) -> None:
        """Subscribe, announce at once, then keep re-announcing."""
        self._subscription = await self._channel.join(self.key, on_sync)
        await self.announce()
        self._heartbeat_task = asyncio.create_task(
            self._heartbeat(), name=f"presence-heartbeat-{self._room_id}",
        )
        logger.info("Joined presence for room %s as %s", self._room_id, self.key)

    async def announce(self) -> None:
        await self._channel.track(
            self.key,
            {"userId": self.key, "updatedAt": self._clock.now().isoformat()},
        )

    def on_sync(self, event: PresenceSynced) -> bool:
        """Replace the heartbeat map.

        Return True if ``online`` differs from the value last reported.
        """
        if event.room_id != self._room_id:
            return False
        now = self._clock.now()
        previous = self._state.heartbeats
        heartbeats: dict[str, datetime] = {}
        stamps: dict[str, Any] = {}
        for key, meta in event.snapshot.items():
            stamp = _stamp(meta)
            if key not in previous:
                heartbeats[key] = _parse_seen_at(meta, now)
            elif stamp == self._stamps.get(key):
                heartbeats[key] = previous[key]
            else:
                heartbeats[key] = now
            stamps[key] = stamp
        self._state = PresenceState(heartbeats=heartbeats)
        self._stamps = stamps

        online = self.is_online()
        changed = online != self._online
        self._online = online
        return changed

    def close(self) -> None:
        if self._heartbeat_task is not None:
            self._heartbeat_task.cancel()
        if self._subscription is not None:
            self._subscription.close()
            self._subscription = None
        self._state = PresenceState()
        self._stamps = {}
        self._online = False

    async def wait_closed(self) -> None:
        if self._heartbeat_task is None:
            return
        try:
            await self._heartbeat_task
        except asyncio.CancelledError:
            pass
        self._heartbeat_task = None

    async def _heartbeat(self) -> None:
        while True:
            await asyncio.sleep(self.heartbeat_interval)
            try:
                await self.announce()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Presence heartbeat failed for room %s", self._room_id)

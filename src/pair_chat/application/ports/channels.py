from __future__ import annotations

from typing import Any, Callable, Coroutine, Protocol

from pair_chat.application.ports.subscription import Subscription

OnBroadcastCallback = Callable[[str, dict[str, Any]], Coroutine[Any, Any, None]]
OnSyncCallback = Callable[[dict[str, dict[str, Any]]], Coroutine[Any, Any, None]]


class BroadcastChannel(Protocol):
    """Per-room fire-and-forget pub/sub. Self-originated echoes may be delivered."""

    async def publish(self, event: str, payload: dict[str, Any]) -> None: ...

    async def subscribe(self, callback: OnBroadcastCallback) -> Subscription: ...


class PresenceChannel(Protocol):
    """Per-room liveness channel with announce and aggregated snapshot."""

    async def join(self, key: str, on_sync: OnSyncCallback) -> Subscription:
        """Return once subscribed; ``on_sync`` gets ``{key: meta}`` snapshots."""
        ...

    async def track(self, key: str, meta: dict[str, Any]) -> None: ...

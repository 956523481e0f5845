from __future__ import annotations

from typing import Any, Callable, Coroutine, Protocol
from uuid import UUID

from pair_chat.application.ports.subscription import Subscription
from pair_chat.domain.entities.message import Message
from pair_chat.domain.events import MessageDeleted, MessageInserted

OnChangeCallback = Callable[[MessageInserted | MessageDeleted], Coroutine[Any, Any, None]]
OnLossCallback = Callable[[BaseException | None], Coroutine[Any, Any, None]]


class MessageStore(Protocol):
    """Durable, ordered message log with a per-room change feed."""

    async def list_messages(self, room_id: UUID) -> list[Message]:
        """Full history of a room, ascending by created_at."""
        ...

    async def insert(self, room_id: UUID, sender_id: UUID, content: str) -> Message:
        """Persist one row. The store assigns id and created_at."""
        ...

    async def delete(self, message_id: UUID) -> None: ...

    async def subscribe(
        self,
        room_id: UUID,
        on_change: OnChangeCallback,
        on_loss: OnLossCallback,
    ) -> Subscription: ...

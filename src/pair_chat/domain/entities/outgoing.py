from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from pair_chat.domain.entities.message import Message
from pair_chat.domain.value_objects.enums import SendStatus


@dataclass(frozen=True, slots=True)
class OutgoingMessage:
    """One submit attempt of the local user."""

    attempt_id: UUID
    draft: str
    status: SendStatus = SendStatus.DRAFTING
    message: Message | None = None
    error: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (SendStatus.CONFIRMED, SendStatus.FAILED)

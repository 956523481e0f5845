from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID


@dataclass(frozen=True, slots=True)
class TypingSignal:
    room_id: UUID
    user_id: UUID | None


@dataclass(frozen=True, slots=True)
class TypingExpired:
    room_id: UUID
    deadline: datetime


@dataclass(frozen=True, slots=True)
class PresenceSynced:
    room_id: UUID
    snapshot: dict[str, dict[str, Any]] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class FocusGained:
    room_id: UUID


@dataclass(frozen=True, slots=True)
class SubscriptionLost:
    room_id: UUID
    source: str  # "messages" | "typing" | "presence"
    reason: str = ""

from __future__ import annotations

from enum import StrEnum


class SendStatus(StrEnum):
    DRAFTING = "drafting"
    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"


class TypingPhase(StrEnum):
    IDLE = "idle"
    TYPING = "typing"


class ChangeKind(StrEnum):
    INSERT = "message.insert"
    DELETE = "message.delete"


class OutboxStatus(StrEnum):
    PENDING = "pending"
    PROCESSING = "processing"
    SENT = "sent"
    FAILED = "failed"

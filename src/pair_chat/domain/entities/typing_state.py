from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class TypingState:
    remote_typing: bool = False
    expires_at: datetime | None = None

    def active_at(self, at: datetime) -> bool:
        return self.remote_typing and self.expires_at is not None and at <= self.expires_at

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta


@dataclass(frozen=True, slots=True)
class PresenceState:
    """Last heartbeat seen per tracked presence key."""

    heartbeats: dict[str, datetime] = field(default_factory=dict)

    def live_keys(self, now: datetime, window: timedelta) -> set[str]:
        cutoff = now - window
        return {key for key, seen_at in self.heartbeats.items() if seen_at > cutoff}

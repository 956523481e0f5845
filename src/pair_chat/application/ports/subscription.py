from __future__ import annotations

from typing import Protocol


class Subscription(Protocol):
    def close(self) -> None:
        """Stop delivery immediately. Must not block."""
        ...

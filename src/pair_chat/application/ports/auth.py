from __future__ import annotations

from typing import Protocol

from pair_chat.application.dto.principal import Principal


class TokenVerifier(Protocol):
    async def verify(self, token: str) -> Principal:
        """Return the caller behind ``token``; raise on a bad or expired token."""
        ...

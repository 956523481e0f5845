"""In-process registry of UI sockets and the chat client behind each one."""
from __future__ import annotations

import logging
from typing import Any

from fastapi import WebSocket

from pair_chat.infrastructure.ws.protocol import WsOutbound
from pair_chat.services.chat_client import ChatClient

logger = logging.getLogger(__name__)


class ConnectionManager:
    """One ChatClient per socket; disconnecting tears the room session down."""

    def __init__(self) -> None:
        self._clients: dict[WebSocket, tuple[str, ChatClient]] = {}

    def __len__(self) -> int:
        return len(self._clients)

    async def connect(self, ws: WebSocket, principal_key: str, client: ChatClient) -> None:
        await ws.accept()
        self._clients[ws] = (principal_key, client)
        logger.debug("WS connected: %s (total=%d)", principal_key, len(self._clients))

    async def disconnect(self, ws: WebSocket) -> None:
        entry = self._clients.pop(ws, None)
        if entry is None:
            return
        principal_key, client = entry
        await client.deactivate()
        logger.debug("WS disconnected: %s", principal_key)

    async def close_all(self) -> None:
        for ws in list(self._clients):
            await self.disconnect(ws)

    async def send(self, ws: WebSocket, event_type: str, data: dict[str, Any]) -> bool:
        """Send one frame. Return False if the socket is gone."""
        raw = WsOutbound(type=event_type, data=data).model_dump_json()
        try:
            await ws.send_text(raw)
        except Exception:
            logger.debug("WS send failed, dropping socket", exc_info=True)
            return False
        return True

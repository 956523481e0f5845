from __future__ import annotations

import json

import pytest

from pair_chat.infrastructure.ws.manager import ConnectionManager
from pair_chat.services.chat_client import ChatClient
from pair_chat.services.session_resolver import SessionResolver
from tests.conftest import FakeRoomReader


class FakeWebSocket:
    def __init__(self, *, broken: bool = False) -> None:
        self.accepted = False
        self.broken = broken
        self.sent: list[str] = []

    async def accept(self) -> None:
        self.accepted = True

    async def send_text(self, data: str) -> None:
        if self.broken:
            raise RuntimeError("socket closed")
        self.sent.append(data)


@pytest.fixture
def chat_client(harness) -> ChatClient:
    return ChatClient(SessionResolver(FakeRoomReader(rooms=[harness.room])), harness.session_factory)


@pytest.mark.asyncio
async def test_connect_send_disconnect(chat_client, alex):
    manager = ConnectionManager()
    ws = FakeWebSocket()

    await manager.connect(ws, alex.principal_key, chat_client)
    session = await chat_client.activate(alex)
    assert await manager.send(ws, "pong", {}) is True
    await manager.disconnect(ws)

    assert ws.accepted is True
    assert json.loads(ws.sent[0]) == {"type": "pong", "data": {}}
    assert len(manager) == 0
    assert session.closed is True


@pytest.mark.asyncio
async def test_send_to_dead_socket_reports_false(chat_client, alex):
    manager = ConnectionManager()
    ws = FakeWebSocket(broken=True)
    await manager.connect(ws, alex.principal_key, chat_client)

    assert await manager.send(ws, "pong", {}) is False
    await manager.close_all()
    assert len(manager) == 0

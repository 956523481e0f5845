from __future__ import annotations

import asyncio
import logging
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect

from pair_chat.api.deps import build_chat_client, get_prompt_catalog, get_resolver, get_room_reader, get_verifier
from pair_chat.api.v1.schemas.message import ChatViewResponse
from pair_chat.application.dto.principal import Principal
from pair_chat.application.dto.view import ChatView
from pair_chat.config import settings
from pair_chat.infrastructure.ws.manager import ConnectionManager
from pair_chat.infrastructure.ws.protocol import WsInbound, WsOutbound
from pair_chat.services.chat_client import ChatClient

logger = logging.getLogger(__name__)
router = APIRouter(tags=["websocket"])

manager = ConnectionManager()


def get_manager() -> ConnectionManager:
    return manager


async def _authenticate(token: str) -> Principal | None:
    try:
        verifier = get_verifier()
        return await verifier.verify(token)
    except Exception:
        logger.debug("WS auth failed", exc_info=True)
        return None


def _view_frame(view: ChatView) -> dict[str, Any]:
    return ChatViewResponse.model_validate(view, from_attributes=True).model_dump(mode="json")


@router.websocket("/ws/chat")
async def ws_chat(
    websocket: WebSocket,
    token: str = Query(...),
) -> None:
    principal = await _authenticate(token)
    if principal is None:
        await websocket.close(code=4001, reason="Authentication failed")
        return

    async def _push_view(view: ChatView) -> None:
        await manager.send(websocket, "chat.view", _view_frame(view))

    client = build_chat_client(
        websocket.app.state.redis,
        get_resolver(get_room_reader()),
        on_view=_push_view,
    )
    await manager.connect(websocket, principal.principal_key, client)

    heartbeat_task = asyncio.create_task(
        _heartbeat(websocket), name=f"ws-heartbeat-{principal.principal_key}",
    )
    try:
        await client.activate(principal)
        if client.session is None:
            await _push_view(client.view())
        await _read_loop(websocket, client)
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("WS error for %s", principal.principal_key)
    finally:
        heartbeat_task.cancel()
        await manager.disconnect(websocket)


async def _heartbeat(ws: WebSocket) -> None:
    interval = settings.WS_HEARTBEAT_SECONDS
    while True:
        await asyncio.sleep(interval)
        if not await manager.send(ws, "pong", {}):
            return


async def _read_loop(ws: WebSocket, client: ChatClient) -> None:
    while True:
        raw = await ws.receive_text()
        try:
            msg = WsInbound.model_validate_json(raw)
        except Exception:
            await ws.send_text(
                WsOutbound(type="error", data={"code": "invalid_payload"}).model_dump_json()
            )
            continue

        if msg.type == "ping":
            await ws.send_text(WsOutbound(type="pong", data={}).model_dump_json())
            continue

        session = client.session
        if session is None:
            await ws.send_text(
                WsOutbound(type="error", data={"code": "no_room", "detail": client.error}).model_dump_json()
            )
            continue

        if msg.type == "input":
            await session.input_changed(str(msg.data.get("text", "")))

        elif msg.type == "message.send":
            text = msg.data.get("text")
            session.submit(None if text is None else str(text))

        elif msg.type == "message.delete":
            try:
                message_id = UUID(str(msg.data["id"]))
            except (KeyError, ValueError):
                await ws.send_text(
                    WsOutbound(type="error", data={"code": "invalid_data"}).model_dump_json()
                )
                continue
            await session.delete_message(message_id)

        elif msg.type == "focus":
            session.focus_gained()

        elif msg.type == "prompt.pick":
            text = str(msg.data.get("text", ""))
            if get_prompt_catalog().contains(text):
                session.pick_prompt(text)
                await manager.send(ws, "chat.view", _view_frame(session.view()))

        else:
            await ws.send_text(
                WsOutbound(type="error", data={"code": "unknown_type", "type": msg.type}).model_dump_json()
            )

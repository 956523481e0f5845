from __future__ import annotations

import json
from datetime import datetime
from typing import Any
from uuid import UUID

from pair_chat.domain.entities.message import Message


class _Encoder(json.JSONEncoder):
    def default(self, o: object) -> Any:
        if isinstance(o, UUID):
            return str(o)
        if isinstance(o, datetime):
            return o.isoformat()
        return super().default(o)


def serialize_event(event_type: str, payload: dict[str, Any]) -> str:
    envelope = {"event": event_type, "data": payload}
    return json.dumps(envelope, cls=_Encoder)


def deserialize_event(raw: str | bytes) -> tuple[str, dict[str, Any]]:
    data = json.loads(raw)
    return data["event"], data["data"]


def message_to_payload(message: Message) -> dict[str, Any]:
    return {
        "id": str(message.id),
        "room_id": str(message.room_id),
        "sender_id": str(message.sender_id),
        "content": message.content,
        "created_at": message.created_at.isoformat(),
    }


def payload_to_message(data: dict[str, Any]) -> Message:
    return Message(
        id=UUID(data["id"]),
        room_id=UUID(data["room_id"]),
        sender_id=UUID(data["sender_id"]),
        content=data["content"],
        created_at=datetime.fromisoformat(data["created_at"]),
    )

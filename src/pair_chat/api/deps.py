"""FastAPI dependency injection helpers and room-session wiring."""
from __future__ import annotations

from typing import Annotated

import redis.asyncio as aioredis
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from pair_chat.application.dto.principal import Principal
from pair_chat.application.dto.session import SessionContext
from pair_chat.application.ports.auth import TokenVerifier
from pair_chat.application.repositories.room import RoomReader
from pair_chat.config import settings
from pair_chat.infrastructure.auth.hs256_verifier import HS256Verifier
from pair_chat.infrastructure.bus.redis_presence import RedisPresenceChannel
from pair_chat.infrastructure.bus.redis_pubsub import RedisBroadcastChannel
from pair_chat.infrastructure.db.repositories.room import PooledRoomReader
from pair_chat.infrastructure.db.session import AsyncSessionLocal
from pair_chat.infrastructure.db.store import SqlMessageStore
from pair_chat.services.chat_client import ChatClient
from pair_chat.services.prompt_service import PromptCatalog
from pair_chat.services.room_session import OnViewCallback, RoomSession, RoomTransport
from pair_chat.services.session_resolver import SessionResolver

_bearer_scheme = HTTPBearer()

_verifier: TokenVerifier | None = None
_catalog: PromptCatalog | None = None


def get_verifier() -> TokenVerifier:
    global _verifier  # noqa: PLW0603
    if _verifier is None:
        _verifier = HS256Verifier(settings.JWT_SECRET, settings.JWT_ALGORITHM)
    return _verifier


def get_prompt_catalog() -> PromptCatalog:
    global _catalog  # noqa: PLW0603
    if _catalog is None:
        _catalog = PromptCatalog()
    return _catalog


PromptsDep = Annotated[PromptCatalog, Depends(get_prompt_catalog)]


def get_room_reader() -> RoomReader:
    return PooledRoomReader(AsyncSessionLocal)


def get_resolver(rooms: Annotated[RoomReader, Depends(get_room_reader)]) -> SessionResolver:
    return SessionResolver(rooms)


ResolverDep = Annotated[SessionResolver, Depends(get_resolver)]


def get_redis(request: Request) -> aioredis.Redis:
    return request.app.state.redis


async def get_current_principal(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(_bearer_scheme)],
) -> Principal:
    verifier = get_verifier()
    try:
        return await verifier.verify(credentials.credentials)
    except Exception as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc


CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]


def build_transport(redis: aioredis.Redis, context: SessionContext) -> RoomTransport:
    return RoomTransport(
        store=SqlMessageStore(AsyncSessionLocal, redis, settings.feed_channel),
        typing=RedisBroadcastChannel(redis, settings.typing_channel(context.room_id)),
        presence=RedisPresenceChannel(
            redis,
            settings.presence_channel(context.room_id),
            window_seconds=settings.ONLINE_WINDOW_SECONDS,
        ),
    )


def build_chat_client(
    redis: aioredis.Redis,
    resolver: SessionResolver,
    on_view: OnViewCallback | None = None,
) -> ChatClient:
    config = settings.sync_config()

    def _session_factory(context: SessionContext) -> RoomSession:
        return RoomSession(context, build_transport(redis, context), config=config, on_view=on_view)

    return ChatClient(resolver, _session_factory)

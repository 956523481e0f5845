from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import redis.asyncio as aioredis
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pair_chat.api.v1.routers import health, prompts, room, ws
from pair_chat.application.exceptions import (
    ChatError,
    ForbiddenError,
    ResolutionError,
)
from pair_chat.config import settings
from pair_chat.infrastructure.db.session import dispose_engine

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup / shutdown lifecycle."""
    app.state.redis = aioredis.from_url(
        settings.REDIS_URL,
        decode_responses=True,
    )
    logger.info("Redis connection pool created")

    yield

    await ws.get_manager().close_all()
    await app.state.redis.aclose()
    logger.info("Redis connection pool closed")
    await dispose_engine()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Pair Chat",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(prompts.router)
    app.include_router(room.router)
    app.include_router(ws.router)

    return app


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ResolutionError)
    async def _unresolved(_req: Request, exc: ResolutionError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": exc.detail})

    @app.exception_handler(ForbiddenError)
    async def _forbidden(_req: Request, exc: ForbiddenError) -> JSONResponse:
        return JSONResponse(status_code=403, content={"detail": exc.detail})

    @app.exception_handler(ChatError)
    async def _unavailable(_req: Request, exc: ChatError) -> JSONResponse:
        return JSONResponse(status_code=503, content={"detail": exc.detail})

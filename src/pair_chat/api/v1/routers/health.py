from __future__ import annotations

from typing import Annotated

import redis.asyncio as aioredis
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from pair_chat.api.deps import get_redis
from pair_chat.infrastructure.db.session import AsyncSessionLocal

router = APIRouter(tags=["health"])


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/readyz")
async def readyz(redis: Annotated[aioredis.Redis, Depends(get_redis)]) -> JSONResponse:
    """Check the message store and the channel broker."""
    checks: dict[str, str] = {}

    try:
        async with AsyncSessionLocal() as session:
            await session.execute(text("SELECT 1"))
        checks["store"] = "ok"
    except (SQLAlchemyError, OSError) as exc:
        checks["store"] = f"error: {exc}"

    try:
        await redis.ping()
        checks["channels"] = "ok"
    except (RedisError, OSError) as exc:
        checks["channels"] = f"error: {exc}"

    ready = all(v == "ok" for v in checks.values())
    return JSONResponse(
        status_code=200 if ready else 503,
        content={"status": "ready" if ready else "unavailable", "checks": checks},
    )

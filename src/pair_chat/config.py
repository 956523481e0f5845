from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


@dataclass(frozen=True, slots=True)
class SyncConfig:
    """Timing knobs of a room session."""

    typing_idle_ms: int = 2000
    typing_throttle_ms: int = 400
    online_window_seconds: float = 20.0
    send_timeout_seconds: float = 15.0
    unread_badge_cap: int = 9


class Settings(BaseSettings):
    POSTGRES_USER: str = "pair_chat"
    POSTGRES_PASSWORD: str = "pair_chat"
    POSTGRES_DB: str = "pair_chat"
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432

    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_RECYCLE: int = 300

    REDIS_URL: str = "redis://localhost:6379/0"

    JWT_SECRET: str = ""
    JWT_ALGORITHM: str = "HS256"

    CORS_ORIGINS: list[str] = ["*"]

    APP_HOST: str = "0.0.0.0"
    APP_PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    OUTBOX_POLL_INTERVAL: float = 1.0
    OUTBOX_BATCH_SIZE: int = 50
    OUTBOX_MAX_ATTEMPTS: int = 5

    WS_HEARTBEAT_SECONDS: int = 30

    TYPING_IDLE_MS: int = 2000
    TYPING_THROTTLE_MS: int = 400
    ONLINE_WINDOW_SECONDS: float = 20.0
    SEND_TIMEOUT_SECONDS: float = 15.0
    UNREAD_BADGE_CAP: int = 9

    ROOM_FEED_CHANNEL: str = "room-messages:{room_id}"
    TYPING_CHANNEL: str = "typing:{room_id}"
    PRESENCE_CHANNEL: str = "presence:{room_id}"

    @property
    def database_url(self) -> str:
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.POSTGRES_DB}"
        )

    def feed_channel(self, room_id: UUID) -> str:
        return self.ROOM_FEED_CHANNEL.format(room_id=room_id)

    def typing_channel(self, room_id: UUID) -> str:
        return self.TYPING_CHANNEL.format(room_id=room_id)

    def presence_channel(self, room_id: UUID) -> str:
        return self.PRESENCE_CHANNEL.format(room_id=room_id)

    def sync_config(self) -> SyncConfig:
        return SyncConfig(
            typing_idle_ms=self.TYPING_IDLE_MS,
            typing_throttle_ms=self.TYPING_THROTTLE_MS,
            online_window_seconds=self.ONLINE_WINDOW_SECONDS,
            send_timeout_seconds=self.SEND_TIMEOUT_SECONDS,
            unread_badge_cap=self.UNREAD_BADGE_CAP,
        )

    model_config = ConfigDict(
        env_file=".env",
        extra="ignore",
    )


settings = Settings()  # type: ignore[call-arg]

from __future__ import annotations

import logging
from typing import Callable

from pair_chat.application.dto.principal import Principal
from pair_chat.application.dto.session import SessionContext
from pair_chat.application.dto.view import ChatView
from pair_chat.application.exceptions import ForbiddenError, ResolutionError
from pair_chat.services.room_session import RoomSession
from pair_chat.services.session_resolver import SessionResolver

logger = logging.getLogger(__name__)

SessionFactory = Callable[[SessionContext], RoomSession]

INERT_SUBTITLE = "Link with your person to start chatting"


class ChatClient:
    """Keeps at most one room session alive for the local user.

    The room is re-resolved on every ``activate``; when it changes, the
    previous session is fully torn down before the next one opens, so no
    presence, typing or unread state leaks across rooms.
    """

    def __init__(self, resolver: SessionResolver, session_factory: SessionFactory) -> None:
        self._resolver = resolver
        self._session_factory = session_factory
        self._session: RoomSession | None = None
        self._principal: Principal | None = None
        self.error: str | None = None

    @property
    def session(self) -> RoomSession | None:
        return self._session

    async def activate(self, principal: Principal | None) -> RoomSession | None:
        self._principal = principal
        try:
            context = await self._resolver.resolve(principal)
        except (ResolutionError, ForbiddenError) as exc:
            logger.info("Chat inert for %s: %s", principal and principal.user_id, exc.detail)
            await self.deactivate()
            self.error = exc.detail
            return None

        self.error = None
        current = self._session
        if current is not None and not current.closed and current.context.room_id == context.room_id:
            return current

        await self.deactivate()
        session = self._session_factory(context)
        self._session = session
        await session.open()
        return session

    async def deactivate(self) -> None:
        if self._session is None:
            return
        session, self._session = self._session, None
        await session.aclose()

    def view(self) -> ChatView:
        if self._session is not None:
            return self._session.view()
        return ChatView(
            room_id=None,
            local_id=self._principal.user_id if self._principal else None,
            subtitle=INERT_SUBTITLE,
            error=self.error,
        )

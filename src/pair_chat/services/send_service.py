from __future__ import annotations

import asyncio
import dataclasses
import logging
import uuid
from typing import Callable
from uuid import UUID

from pair_chat.application.exceptions import SendError
from pair_chat.application.ports.store import MessageStore
from pair_chat.domain.entities.message import Message
from pair_chat.domain.entities.outgoing import OutgoingMessage
from pair_chat.domain.value_objects.enums import SendStatus

logger = logging.getLogger(__name__)

SEND_FAILED = "Could not send message."

OnConfirmedCallback = Callable[[Message], None]


class SendPipeline:
    """Drafting -> Pending -> Confirmed | Failed, one attempt at a time.

    There is no automatic retry: a Failed attempt keeps its draft and
    stays terminal until the user submits again.
    """

    def __init__(
        self,
        room_id: UUID | None,
        local_id: UUID | None,
        store: MessageStore,
        *,
        on_confirmed: OnConfirmedCallback | None = None,
        timeout_seconds: float | None = 15.0,
    ) -> None:
        self._room_id = room_id
        self._local_id = local_id
        self._store = store
        self._on_confirmed = on_confirmed
        self._timeout = timeout_seconds
        self._pending: OutgoingMessage | None = None
        self._last: OutgoingMessage | None = None

    @property
    def pending(self) -> OutgoingMessage | None:
        return self._pending

    @property
    def last_attempt(self) -> OutgoingMessage | None:
        return self._last

    async def submit(self, text: str) -> OutgoingMessage | None:
        """Send ``text``. Return None when a precondition is missing."""
        content = text.strip()
        if not content or self._room_id is None or self._local_id is None:
            logger.debug("Submit ignored: empty text or unresolved session")
            return None
        if self._pending is not None:
            logger.debug("Submit ignored: attempt %s still pending", self._pending.attempt_id)
            return None

        attempt = OutgoingMessage(attempt_id=uuid.uuid4(), draft=text, status=SendStatus.PENDING)
        self._pending = attempt
        try:
            row = await asyncio.wait_for(
                self._store.insert(self._room_id, self._local_id, content),
                timeout=self._timeout,
            )
        except (SendError, asyncio.TimeoutError) as exc:
            logger.warning("Send failed in room %s: %s", self._room_id, exc or "timeout")
            attempt = dataclasses.replace(attempt, status=SendStatus.FAILED, error=SEND_FAILED)
        else:
            attempt = dataclasses.replace(attempt, status=SendStatus.CONFIRMED, message=row)
            if self._on_confirmed is not None:
                self._on_confirmed(row)
        finally:
            self._pending = None

        self._last = attempt
        return attempt

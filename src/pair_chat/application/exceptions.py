from __future__ import annotations


class ChatError(Exception):
    """Base error of a room session; ``detail`` is user-facing text."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(detail)


class ResolutionError(ChatError):
    """No identity or no room yet; the chat stays inert."""


class FetchError(ChatError):
    pass


class SendError(ChatError):
    pass


class SubscriptionLoss(ChatError):
    pass


class ForbiddenError(ChatError):
    pass


class ChannelError(ChatError):
    """Publishing on an ephemeral channel failed."""

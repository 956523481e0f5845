from pair_chat.domain.events.message_changed import (
    MessageConfirmed,
    MessageDeleted,
    MessageInserted,
    MessageRemovedLocally,
)
from pair_chat.domain.events.signals import (
    FocusGained,
    PresenceSynced,
    SubscriptionLost,
    TypingExpired,
    TypingSignal,
)

RoomEvent = (
    MessageInserted
    | MessageDeleted
    | MessageConfirmed
    | MessageRemovedLocally
    | TypingSignal
    | TypingExpired
    | PresenceSynced
    | FocusGained
    | SubscriptionLost
)

__all__ = [
    "FocusGained",
    "MessageConfirmed",
    "MessageDeleted",
    "MessageInserted",
    "MessageRemovedLocally",
    "PresenceSynced",
    "RoomEvent",
    "SubscriptionLost",
    "TypingExpired",
    "TypingSignal",
]

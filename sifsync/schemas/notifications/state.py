# sifsync/schemas/notifications/state.py
from enum import Enum
from typing import Dict, FrozenSet


class NotificationState(str, Enum):
    PENDING = "pending"
    SENT = "sent"
    DELIVERED = "delivered"
    READ = "read"
    FAILED = "failed"
    CANCELLED = "cancelled"
    ARCHIVED = "archived"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()

    @property
    def is_active(self) -> bool:
        return self in (NotificationState.PENDING, NotificationState.SENT, NotificationState.DELIVERED)

    @property
    def is_terminal(self) -> bool:
        return not ALLOWED_TRANSITIONS[self]

    @property
    def can_retry(self) -> bool:
        return self is NotificationState.FAILED

    @property
    def can_cancel(self) -> bool:
        return self is NotificationState.PENDING

    @property
    def can_archive(self) -> bool:
        return self in (NotificationState.READ, NotificationState.DELIVERED)

    def can_transition_to(self, target: "NotificationState") -> bool:
        return target in ALLOWED_TRANSITIONS[self]


INITIAL_STATE = NotificationState.PENDING

# Every edge of the lifecycle; anything missing here is rejected.
ALLOWED_TRANSITIONS: Dict[NotificationState, FrozenSet[NotificationState]] = {
    NotificationState.PENDING: frozenset({
        NotificationState.SENT,
        NotificationState.FAILED,
        NotificationState.CANCELLED,
    }),
    NotificationState.SENT: frozenset({NotificationState.DELIVERED}),
    NotificationState.DELIVERED: frozenset({NotificationState.READ, NotificationState.ARCHIVED}),
    NotificationState.READ: frozenset({NotificationState.ARCHIVED}),
    NotificationState.FAILED: frozenset({NotificationState.PENDING}),
    NotificationState.CANCELLED: frozenset(),
    NotificationState.ARCHIVED: frozenset(),
}


class NotificationFilter(str, Enum):
    ALL = "all"
    UNREAD = "unread"
    READ = "read"
    ARCHIVED = "archived"
    FAILED = "failed"
    SCHEDULED = "scheduled"


class NotificationSort(str, Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    PRIORITY = "priority"
    TYPE = "type"

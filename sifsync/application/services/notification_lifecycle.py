from typing import Iterable, List

from ...exceptions import InvalidTransitionError
from ...schemas import (
    Notification,
    NotificationFilter,
    NotificationSort,
    NotificationState,
)


def transition(notification: Notification, target: NotificationState) -> Notification:
    """Return a copy of ``notification`` in ``target`` state.

    Raises InvalidTransitionError for any edge the lifecycle does not list.
    """
    current = notification.state
    if not current.can_transition_to(target):
        raise InvalidTransitionError(current.value, target.value)
    return notification.model_copy(update={"state": target})


def apply_filter(notifications: Iterable[Notification], selected: NotificationFilter) -> List[Notification]:
    items = list(notifications)
    if selected is NotificationFilter.UNREAD:
        return [n for n in items if not n.is_read]
    if selected is NotificationFilter.READ:
        return [n for n in items if n.is_read]
    if selected is NotificationFilter.ARCHIVED:
        return [n for n in items if n.state is NotificationState.ARCHIVED]
    if selected is NotificationFilter.FAILED:
        return [n for n in items if n.state is NotificationState.FAILED]
    if selected is NotificationFilter.SCHEDULED:
        return [n for n in items if n.is_scheduled]
    return items


def apply_sort(notifications: Iterable[Notification], order: NotificationSort) -> List[Notification]:
    items = list(notifications)
    if order is NotificationSort.OLDEST:
        return sorted(items, key=lambda n: n.created_at)
    if order is NotificationSort.PRIORITY:
        return sorted(items, key=lambda n: (-n.priority.rank, -n.created_at.timestamp()))
    if order is NotificationSort.TYPE:
        return sorted(items, key=lambda n: (n.type.value, -n.created_at.timestamp()))
    return sorted(items, key=lambda n: n.created_at, reverse=True)

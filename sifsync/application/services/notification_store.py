import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional

from pydantic import ValidationError

from ..ports.alert_throttle import AlertThrottle
from ..ports.audit_logger import AuditLogger
from ..ports.event_publisher import EventPublisher
from ..ports.key_value_store import KeyValueStore
from ..ports.remote_store import (
    SERVER_TIMESTAMP,
    BatchUpdate,
    FieldFilter,
    QuerySpec,
    RemoteDocumentStore,
    Snapshot,
    Subscription,
)
from ...core import constants
from ...exceptions import (
    BatchWriteFailedError,
    KeyValueStoreError,
    ListenerFailedError,
    NotificationNotFoundError,
    RemoteStoreError,
    SyncError,
    WriteFailedError,
)
from ...schemas import (
    Notification,
    NotificationFilter,
    NotificationPayload,
    NotificationPreferences,
    NotificationSort,
    NotificationState,
    NotificationType,
    actions_for,
)
from .notification_lifecycle import apply_filter, apply_sort
from .notification_lifecycle import transition as lifecycle_transition
from .preference_evaluator import PreferenceEvaluator

logger = logging.getLogger(__name__)

PreferencesProvider = Callable[[str], Optional[NotificationPreferences]]


def _local_now() -> datetime:
    # Quiet hours are wall-clock times on the device.
    return datetime.now().astimezone()


@dataclass
class NotificationStateStore:
    """In-memory notification collection for the signed-in user.

    The remote change stream is authoritative: every snapshot replaces the
    collection. Local mutations are applied only after the remote write
    has been confirmed.
    """

    store: RemoteDocumentStore
    kv: KeyValueStore
    publisher: EventPublisher
    throttle: AlertThrottle
    audit: AuditLogger
    preferences: PreferencesProvider
    is_app_active: Callable[[], bool] = lambda: True
    max_retained: int = constants.MAX_NOTIFICATIONS_TO_SHOW
    clock: Callable[[], datetime] = _local_now

    notifications: List[Notification] = field(default_factory=list, init=False)
    unread_count: int = field(default=0, init=False)
    badge_count: int = field(default=0, init=False)
    error: Optional[SyncError] = field(default=None, init=False)
    is_loading: bool = field(default=False, init=False)
    user_id: Optional[str] = field(default=None, init=False)
    _subscription: Optional[Subscription] = field(default=None, init=False, repr=False)
    _task: Optional["asyncio.Task"] = field(default=None, init=False, repr=False)

    # Subscription

    def subscribe(self, user_id: str) -> None:
        self._teardown()
        self.user_id = user_id
        self.is_loading = True
        self.error = None
        spec = QuerySpec(
            collection=constants.NOTIFICATIONS_COLLECTION,
            filters=(FieldFilter("recipientUID", "==", user_id),),
            order_by="createdAt",
            descending=True,
            limit=self.max_retained,
        )
        self._subscription = self.store.watch_query(spec)
        self._task = asyncio.get_running_loop().create_task(self._consume(self._subscription))
        logger.info(f"Subscribed to notifications for {user_id}")

    def unsubscribe(self) -> None:
        self._teardown()
        self.user_id = None
        self.notifications = []
        self.is_loading = False
        self._recompute()

    @property
    def is_subscribed(self) -> bool:
        return self._subscription is not None and not self._subscription.closed

    def _teardown(self) -> None:
        if self._subscription is not None:
            self._subscription.close()
            self._subscription = None
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def _consume(self, subscription: Subscription) -> None:
        async for snapshot in subscription:
            self._apply_snapshot(snapshot)

    def _apply_snapshot(self, snapshot: Snapshot) -> None:
        self.is_loading = False
        if snapshot.error is not None:
            logger.error(f"Notification listener failed: {snapshot.error}")
            self.error = ListenerFailedError()
            return

        decoded: List[Notification] = []
        for document in snapshot.documents:
            try:
                decoded.append(Notification.from_document({**document.data, "id": document.id}))
            except ValidationError as e:
                logger.warning(f"Skipping undecodable notification {document.id}: {e}")
        self.notifications = decoded
        self._recompute()

    # Remote mutations

    async def create(
        self,
        title: str,
        body: str,
        notification_type: NotificationType,
        recipient_uid: str,
        sender_uid: Optional[str] = None,
        payload: Optional[NotificationPayload] = None,
        scheduled_at: Optional[datetime] = None,
    ) -> str:
        """Write a pending notification; it shows up locally via the subscription."""
        notification = Notification(
            title=title,
            body=body,
            type=notification_type,
            payload=payload,
            scheduled_at=scheduled_at,
            sender_uid=sender_uid,
            recipient_uid=recipient_uid,
            priority=notification_type.default_priority,
            actions=actions_for(notification_type),
        )
        data = notification.to_document()
        data.pop("id", None)
        data["createdAt"] = SERVER_TIMESTAMP
        try:
            doc_id = await self.store.add(constants.NOTIFICATIONS_COLLECTION, data)
        except RemoteStoreError as e:
            logger.error(f"Failed to create notification: {e}")
            raise self._record(WriteFailedError("create")) from e
        logger.info(f"Created notification {doc_id} for {recipient_uid}")
        return doc_id

    async def mark_read(self, notification_id: str) -> None:
        try:
            await self.store.update(constants.NOTIFICATIONS_COLLECTION, notification_id, {"isRead": True})
        except RemoteStoreError as e:
            logger.error(f"Failed to mark notification as read: {e}")
            raise self._record(WriteFailedError("update")) from e
        self.notifications = [
            n.model_copy(update={"is_read": True}) if n.id == notification_id else n
            for n in self.notifications
        ]
        self._recompute()

    async def mark_all_read(self, user_id: str) -> int:
        """Flip every unread notification of ``user_id`` in one atomic batch."""
        unread = [n for n in self.notifications if not n.is_read and n.recipient_uid == user_id and n.id]
        if not unread:
            return 0

        updates = [BatchUpdate(constants.NOTIFICATIONS_COLLECTION, n.id, {"isRead": True}) for n in unread]
        try:
            await self.store.commit_batch(updates)
        except RemoteStoreError as e:
            logger.error(f"Failed to mark all notifications as read: {e}")
            raise self._record(BatchWriteFailedError()) from e

        committed = {n.id for n in unread}
        self.notifications = [
            n.model_copy(update={"is_read": True}) if n.id in committed else n
            for n in self.notifications
        ]
        self._recompute()
        return len(committed)

    async def delete(self, notification_id: str) -> None:
        try:
            await self.store.delete(constants.NOTIFICATIONS_COLLECTION, notification_id)
        except RemoteStoreError as e:
            logger.error(f"Failed to delete notification: {e}")
            raise self._record(WriteFailedError("delete")) from e
        self.notifications = [n for n in self.notifications if n.id != notification_id]
        self._recompute()

    async def transition(self, notification_id: str, target: NotificationState) -> Notification:
        current = self.get(notification_id)
        if current is None:
            raise self._record(NotificationNotFoundError(notification_id))
        updated = lifecycle_transition(current, target)
        try:
            await self.store.update(constants.NOTIFICATIONS_COLLECTION, notification_id, {"state": target.value})
        except RemoteStoreError as e:
            logger.error(f"Failed to move notification {notification_id} to {target.value}: {e}")
            raise self._record(WriteFailedError("update")) from e
        self.notifications = [updated if n.id == notification_id else n for n in self.notifications]
        self._recompute()
        return updated

    async def retry(self, notification_id: str) -> Notification:
        return await self.transition(notification_id, NotificationState.PENDING)

    async def cancel(self, notification_id: str) -> Notification:
        return await self.transition(notification_id, NotificationState.CANCELLED)

    async def archive(self, notification_id: str) -> Notification:
        return await self.transition(notification_id, NotificationState.ARCHIVED)

    # Inbound delivery

    def ingest_inbound(self, notification: Notification, now: Optional[datetime] = None) -> bool:
        """Merge a notification that arrived outside the subscription.

        Returns True when the notification is visible locally afterwards.
        """
        now = now or self.clock()
        preferences = self.preferences(notification.recipient_uid)
        if preferences is None:
            return self._suppress(notification, "preferences_not_loaded")

        decision = PreferenceEvaluator(preferences).evaluate(notification.type, now)
        if not decision.allowed:
            return self._suppress(notification, "disabled_by_preferences")

        if notification.id is not None and self.get(notification.id) is not None:
            return True

        self.notifications = [notification] + self.notifications[: self.max_retained - 1]
        self._recompute()

        if self.is_app_active() and not decision.quiet_hours:
            limit = preferences.max_notifications_per_hour
            if self.throttle.try_acquire(notification.recipient_uid, limit):
                self.publisher.publish(constants.EVENT_SHOW_IN_APP_NOTIFICATION, {
                    "notification": notification,
                    "play_sound": decision.play_sound,
                    "show_badge": decision.show_badge,
                })
            else:
                logger.info(f"Alert for {notification.recipient_uid} throttled")
        return True

    def _suppress(self, notification: Notification, reason: str) -> bool:
        self.audit.log(
            "notification_suppressed",
            notification.recipient_uid,
            subject_id=notification.id,
            reason=reason,
            details={"type": notification.type.value},
        )
        return False

    # Local views

    def get(self, notification_id: str) -> Optional[Notification]:
        for notification in self.notifications:
            if notification.id == notification_id:
                return notification
        return None

    def filtered(
        self,
        selected: NotificationFilter = NotificationFilter.ALL,
        order: NotificationSort = NotificationSort.NEWEST,
    ) -> List[Notification]:
        return apply_sort(apply_filter(self.notifications, selected), order)

    def clear_badge(self) -> None:
        self.badge_count = 0
        self._mirror_badge()

    def _recompute(self) -> None:
        self.unread_count = sum(1 for n in self.notifications if not n.is_read)
        self.badge_count = self.unread_count
        self._mirror_badge()

    def _mirror_badge(self) -> None:
        try:
            self.kv.set(constants.BADGE_COUNT_KEY, str(self.badge_count).encode())
        except KeyValueStoreError as e:
            logger.warning(f"Failed to mirror badge count: {e}")

    def _record(self, error: SyncError) -> SyncError:
        self.error = error
        return error

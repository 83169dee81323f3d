import asyncio
import logging
from dataclasses import dataclass, field
from typing import Optional

from pydantic import ValidationError

from ..ports.remote_store import RemoteDocumentStore, Snapshot, Subscription
from ...core import constants
from ...exceptions import DecodeError, ListenerFailedError, RemoteStoreError, SyncError, WriteFailedError
from ...schemas import NotificationPreferences

logger = logging.getLogger(__name__)


@dataclass
class NotificationPreferencesStore:
    """Mirror of ``notification_preferences/{uid}``; defaults are written when absent."""

    store: RemoteDocumentStore

    current: Optional[NotificationPreferences] = field(default=None, init=False)
    error: Optional[SyncError] = field(default=None, init=False)
    user_id: Optional[str] = field(default=None, init=False)
    _subscription: Optional[Subscription] = field(default=None, init=False, repr=False)
    _task: Optional["asyncio.Task"] = field(default=None, init=False, repr=False)

    def subscribe(self, user_id: str) -> None:
        self.unsubscribe()
        self.user_id = user_id
        self._subscription = self.store.watch_document(constants.NOTIFICATION_PREFERENCES_COLLECTION, user_id)
        self._task = asyncio.get_running_loop().create_task(self._consume(self._subscription))

    def unsubscribe(self) -> None:
        if self._subscription is not None:
            self._subscription.close()
            self._subscription = None
        if self._task is not None:
            self._task.cancel()
            self._task = None
        self.current = None
        self.user_id = None

    async def _consume(self, subscription: Subscription) -> None:
        async for snapshot in subscription:
            await self._apply_snapshot(snapshot)

    async def _apply_snapshot(self, snapshot: Snapshot) -> None:
        if snapshot.error is not None:
            logger.error(f"Preferences listener failed: {snapshot.error}")
            self.error = ListenerFailedError()
            return

        if not snapshot.exists:
            defaults = NotificationPreferences(user_id=self.user_id)
            try:
                await self.update(defaults)
            except SyncError:
                # Already recorded on self.error; keep serving defaults locally.
                self.current = defaults
            return

        try:
            self.current = NotificationPreferences.from_document(snapshot.document.data)
        except ValidationError as e:
            logger.error(f"Failed to decode notification preferences: {e}")
            self.error = DecodeError()

    async def update(self, preferences: NotificationPreferences) -> None:
        try:
            await self.store.set(
                constants.NOTIFICATION_PREFERENCES_COLLECTION,
                preferences.user_id,
                preferences.to_document(),
            )
        except RemoteStoreError as e:
            logger.error(f"Failed to save notification preferences: {e}")
            self.error = WriteFailedError("save")
            raise self.error from e
        self.current = preferences

    def preferences_for(self, user_id: str) -> Optional[NotificationPreferences]:
        """Loaded preferences for ``user_id``, or None until its snapshot has arrived."""
        if self.current is not None and self.current.user_id == user_id:
            return self.current
        return None

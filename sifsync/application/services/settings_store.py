import asyncio
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Mapping, Optional

from pydantic import BaseModel, ValidationError

from ..ports.identity import IdentityProvider
from ..ports.key_value_store import KeyValueStore
from ..ports.remote_store import RemoteDocumentStore, Snapshot, Subscription
from ...core import constants
from ...exceptions import (
    DecodeError,
    EncodeError,
    KeyValueStoreError,
    ListenerFailedError,
    MigrationFailedError,
    ReadFailedError,
    RemoteStoreError,
    SettingsNotLoadedError,
    SyncError,
    UserNotAuthenticatedError,
    ValidationFailedError,
    WriteFailedError,
)
from ...schemas import SECTION_MODELS, SettingsSection, UserSettings
from .settings_defaults import factory_reset, safe_default_settings
from .settings_migrator import SettingsMigrator
from .settings_validation import validate_user_settings

logger = logging.getLogger(__name__)

# %Y%m%d%H%M%S%f
_BACKUP_STAMP = re.compile(r"\d{20}")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _document_version(data: Mapping[str, Any]) -> int:
    try:
        return int(data.get("version") or 0)
    except (TypeError, ValueError):
        return 0


@dataclass
class SettingsStore:
    """Single source of truth for the signed-in user's ``UserSettings``.

    Reads go cache -> remote (migrating old documents); writes are
    validated, backed up locally and confirmed remotely before the cache,
    the in-memory value and the offline snapshot are updated together.
    """

    store: RemoteDocumentStore
    kv: KeyValueStore
    identity: IdentityProvider
    migrator: SettingsMigrator = field(default_factory=SettingsMigrator)
    offline_enabled: bool = True
    clock: Callable[[], datetime] = _utcnow

    settings: Optional[UserSettings] = field(default=None, init=False)
    is_loading: bool = field(default=False, init=False)
    error: Optional[SyncError] = field(default=None, init=False)
    last_sync_date: Optional[datetime] = field(default=None, init=False)
    _cache: Dict[str, UserSettings] = field(default_factory=dict, init=False, repr=False)
    _subscription: Optional[Subscription] = field(default=None, init=False, repr=False)
    _task: Optional["asyncio.Task"] = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        self.last_sync_date = self._stored_sync_date()

    # Load

    async def load(self, uid: Optional[str] = None) -> UserSettings:
        uid = self._require_user(uid)

        cached = self._cache.get(uid)
        if cached is not None:
            self.settings = cached
            return cached

        self.is_loading = True
        self.error = None
        try:
            return await self._load_remote(uid, allow_migration=True)
        finally:
            self.is_loading = False

    async def _load_remote(self, uid: str, allow_migration: bool) -> UserSettings:
        try:
            document = await self.store.get(constants.USER_SETTINGS_COLLECTION, uid)
        except RemoteStoreError as e:
            logger.error(f"Failed to load settings for {uid}: {e}")
            raise self._record(ReadFailedError()) from e

        if document is None:
            logger.info(f"No settings for {uid}, creating defaults")
            return await self._persist(safe_default_settings(uid))

        version = _document_version(document.data)
        if self.migrator.needs_migration(version):
            if not allow_migration:
                raise self._record(MigrationFailedError(
                    version, self.migrator.target_version, "document still outdated after migration",
                ))
            result = self.migrator.migrate(document.data, version)
            if not result.succeeded:
                raise self._record(result.error)
            try:
                await self.store.set(constants.USER_SETTINGS_COLLECTION, uid, result.document)
            except RemoteStoreError as e:
                logger.error(f"Failed to store migrated settings for {uid}: {e}")
                raise self._record(WriteFailedError("save")) from e
            return await self._load_remote(uid, allow_migration=False)

        settings = self._decode(document.data)
        self._apply(settings)
        return settings

    # Save

    async def save(self, settings: UserSettings) -> UserSettings:
        self._require_user()

        violations = validate_user_settings(settings)
        if violations:
            raise self._record(ValidationFailedError(violations))

        self.is_loading = True
        self.error = None
        try:
            return await self._persist(settings)
        finally:
            self.is_loading = False

    async def update_section(self, section: SettingsSection, value: BaseModel) -> UserSettings:
        if self.settings is None:
            raise self._record(SettingsNotLoadedError())
        expected = SECTION_MODELS[section]
        if not isinstance(value, expected):
            raise TypeError(f"{section.value} expects {expected.__name__}, got {type(value).__name__}")
        updated = self.settings.model_copy(update={section.value: value}, deep=True)
        return await self.save(updated)

    async def reset_to_defaults(self, uid: Optional[str] = None) -> UserSettings:
        uid = self._require_user(uid)
        display_name = None
        if self.settings is not None and self.settings.uid == uid:
            display_name = self.settings.profile_settings.display_name
        return await self.save(factory_reset(uid, display_name))

    async def _persist(self, settings: UserSettings) -> UserSettings:
        if self.settings is not None:
            self._backup(self.settings)

        updated = settings.model_copy(
            update={"version": constants.CURRENT_SETTINGS_VERSION, "last_updated": self.clock()},
            deep=True,
        )
        try:
            data = updated.to_document()
        except ValueError as e:
            raise self._record(EncodeError()) from e

        try:
            await self.store.set(constants.USER_SETTINGS_COLLECTION, updated.uid, data)
        except RemoteStoreError as e:
            logger.error(f"Failed to save settings for {updated.uid}: {e}")
            raise self._record(WriteFailedError("save")) from e

        self._apply(updated)
        if self.offline_enabled:
            self.save_offline_settings(updated)
        return updated

    # Standing listener

    def start_listening(self, uid: str) -> None:
        self.stop_listening()
        self._subscription = self.store.watch_document(constants.USER_SETTINGS_COLLECTION, uid)
        self._task = asyncio.get_running_loop().create_task(self._consume(self._subscription))

    def stop_listening(self) -> None:
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
        if snapshot.error is not None:
            logger.error(f"Settings listener failed: {snapshot.error}")
            self.error = ListenerFailedError()
            return
        if not snapshot.exists:
            return

        data = snapshot.document.data
        if _document_version(data) < constants.CURRENT_SETTINGS_VERSION:
            # load() migrates it; the migrated write comes back through here.
            logger.debug(f"Ignoring outdated settings document {snapshot.document.id}")
            return
        try:
            settings = self._decode(data)
        except DecodeError:
            return
        self._apply(settings)

    # Offline snapshot

    def get_offline_settings(self) -> Optional[UserSettings]:
        uid = self.identity.current_user_id()
        if uid is None:
            return None
        try:
            raw = self.kv.get(constants.OFFLINE_SETTINGS_KEY)
        except KeyValueStoreError as e:
            logger.warning(f"Failed to read offline settings: {e}")
            return None
        if raw is None:
            return None
        try:
            settings = UserSettings.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Discarding unreadable offline settings: {e}")
            return None
        return settings if settings.uid == uid else None

    def save_offline_settings(self, settings: UserSettings) -> None:
        try:
            self.kv.set(constants.OFFLINE_SETTINGS_KEY, settings.model_dump_json(by_alias=True).encode())
        except KeyValueStoreError as e:
            logger.error(f"Failed to save offline settings: {e}")

    # Backups

    def _backup(self, settings: UserSettings) -> None:
        key = f"{constants.SETTINGS_BACKUP_PREFIX}{settings.uid}_{self.clock().strftime('%Y%m%d%H%M%S%f')}"
        try:
            self.kv.set(key, settings.model_dump_json(by_alias=True).encode())
        except KeyValueStoreError as e:
            logger.error(f"Failed to back up settings for {settings.uid}: {e}")

    def restore_from_backup(self, uid: str) -> Optional[UserSettings]:
        """Most recent locally backed-up settings for ``uid``, if any."""
        prefix = f"{constants.SETTINGS_BACKUP_PREFIX}{uid}_"
        try:
            keys = [k for k in self.kv.keys(prefix) if _BACKUP_STAMP.fullmatch(k[len(prefix):])]
            raw = self.kv.get(max(keys)) if keys else None
        except KeyValueStoreError as e:
            logger.error(f"Failed to read settings backups for {uid}: {e}")
            raise self._record(ReadFailedError()) from e
        if raw is None:
            return None
        try:
            return UserSettings.model_validate_json(raw)
        except ValidationError as e:
            raise self._record(DecodeError()) from e

    # Cache

    def clear_cache(self) -> None:
        self._cache.clear()

    def reset(self) -> None:
        """Forget everything held for the previous identity."""
        self.stop_listening()
        self.clear_cache()
        self.settings = None
        self.error = None
        self.is_loading = False

    def _apply(self, settings: UserSettings) -> None:
        self._cache[settings.uid] = settings
        self.settings = settings
        self.last_sync_date = self.clock()
        try:
            self.kv.set(constants.LAST_SETTINGS_SYNC_KEY, self.last_sync_date.isoformat().encode())
        except KeyValueStoreError as e:
            logger.warning(f"Failed to record settings sync date: {e}")

    def _stored_sync_date(self) -> Optional[datetime]:
        try:
            raw = self.kv.get(constants.LAST_SETTINGS_SYNC_KEY)
            return datetime.fromisoformat(raw.decode()) if raw else None
        except (KeyValueStoreError, ValueError) as e:
            logger.warning(f"Ignoring stored settings sync date: {e}")
            return None

    def _decode(self, data: Mapping[str, Any]) -> UserSettings:
        try:
            return UserSettings.from_document(dict(data))
        except ValidationError as e:
            logger.error(f"Failed to decode settings: {e}")
            raise self._record(DecodeError()) from e

    def _require_user(self, uid: Optional[str] = None) -> str:
        current = self.identity.current_user_id()
        if current is None:
            raise self._record(UserNotAuthenticatedError())
        return uid or current

    def _record(self, error: SyncError) -> SyncError:
        self.error = error
        return error

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from .application.ports.alert_throttle import AlertThrottle
from .application.ports.audit_logger import AuditLogger
from .application.ports.key_value_store import KeyValueStore
from .application.ports.push_transport import PushTransport
from .application.ports.remote_store import RemoteDocumentStore
from .application.services.notification_responses import NotificationResponseHandler
from .application.services.notification_store import NotificationStateStore
from .application.services.preferences_store import NotificationPreferencesStore
from .application.services.push_registrar import PushRegistrar
from .application.services.settings_store import SettingsStore
from .core.config import Settings, get_settings
from .exceptions import ReadFailedError, SyncError, UserNotAuthenticatedError
from .infrastructure.auth.session_identity import SessionIdentity
from .infrastructure.events.in_process import InProcessEventPublisher

logger = logging.getLogger(__name__)


@dataclass
class SyncSession:
    """Wires every store for one signed-in identity and owns their subscriptions."""

    store: RemoteDocumentStore
    kv: KeyValueStore
    identity: SessionIdentity
    throttle: AlertThrottle
    audit: AuditLogger
    publisher: InProcessEventPublisher = field(default_factory=InProcessEventPublisher)
    transport: Optional[PushTransport] = None
    config: Settings = field(default_factory=get_settings)
    is_app_active: Callable[[], bool] = lambda: True

    preferences: NotificationPreferencesStore = field(init=False)
    notifications: NotificationStateStore = field(init=False)
    settings: SettingsStore = field(init=False)
    responses: NotificationResponseHandler = field(init=False)
    registrar: Optional[PushRegistrar] = field(default=None, init=False)

    def __post_init__(self) -> None:
        self.preferences = NotificationPreferencesStore(self.store)
        self.notifications = NotificationStateStore(
            store=self.store,
            kv=self.kv,
            publisher=self.publisher,
            throttle=self.throttle,
            audit=self.audit,
            preferences=self.preferences.preferences_for,
            is_app_active=self.is_app_active,
            max_retained=self.config.NOTIFICATIONS_MAX_RETAINED,
        )
        self.settings = SettingsStore(
            store=self.store,
            kv=self.kv,
            identity=self.identity,
            offline_enabled=self.config.OFFLINE_MODE_ENABLED,
        )
        self.responses = NotificationResponseHandler(self.notifications, self.preferences.preferences_for)
        if self.transport is not None:
            self.registrar = PushRegistrar(
                transport=self.transport,
                store=self.store,
                kv=self.kv,
                identity=self.identity,
                publisher=self.publisher,
                platform=self.config.PUSH_PLATFORM,
            )

    async def sign_in(self, user_id: str) -> None:
        self.identity.set_user(user_id)
        await self.start()

    async def sign_out(self) -> None:
        self.stop()
        self.identity.clear()

    async def start(self) -> None:
        uid = self.identity.current_user_id()
        if uid is None:
            raise UserNotAuthenticatedError()

        self.preferences.subscribe(uid)
        self.notifications.subscribe(uid)

        if self.config.SETTINGS_SYNC_ENABLED:
            try:
                await self.settings.load(uid)
            except ReadFailedError:
                offline = self.settings.get_offline_settings() if self.config.OFFLINE_MODE_ENABLED else None
                if offline is None:
                    raise
                logger.warning(f"Using offline settings for {uid}")
                self.settings.settings = offline
            self.settings.start_listening(uid)

        if self.registrar is not None:
            token = self.registrar.cached_token()
            if token:
                try:
                    await self.registrar.on_token_received(token)
                except SyncError as e:
                    logger.warning(f"Could not re-register cached device token: {e.description}")
        logger.info(f"Sync session started for {uid}")

    def stop(self) -> None:
        self.notifications.unsubscribe()
        self.preferences.unsubscribe()
        self.settings.reset()
        logger.info("Sync session stopped")

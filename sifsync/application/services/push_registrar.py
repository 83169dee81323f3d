import logging
from dataclasses import dataclass, field
from typing import Optional, Union

from ..ports.event_publisher import EventPublisher
from ..ports.identity import IdentityProvider
from ..ports.key_value_store import KeyValueStore
from ..ports.push_transport import PushTransport
from ..ports.remote_store import SERVER_TIMESTAMP, RemoteDocumentStore
from ...core import constants
from ...exceptions import (
    KeyValueStoreError,
    PermissionDeniedError,
    RegistrationFailedError,
    RemoteStoreError,
    SyncError,
    TokenPersistenceError,
    UserNotAuthenticatedError,
)
from ...schemas import DeviceTokenRecord, PermissionStatus

logger = logging.getLogger(__name__)


@dataclass
class PushRegistrar:
    transport: PushTransport
    store: RemoteDocumentStore
    kv: KeyValueStore
    identity: IdentityProvider
    publisher: EventPublisher
    platform: str = "ios"

    permission_status: PermissionStatus = field(default=PermissionStatus.NOT_DETERMINED, init=False)
    device_token: Optional[str] = field(default=None, init=False)
    error: Optional[SyncError] = field(default=None, init=False)

    async def request_permission(self) -> PermissionStatus:
        try:
            granted = await self.transport.request_authorization()
        except Exception as e:
            logger.error(f"Notification authorization request failed: {e}")
            raise self._record(RegistrationFailedError()) from e

        if granted:
            self.permission_status = PermissionStatus.GRANTED
            self.transport.register_for_remote_notifications()
        else:
            self.permission_status = PermissionStatus.DENIED
            self.error = PermissionDeniedError()
            logger.info("Notification permission denied")

        self.publisher.publish(constants.EVENT_PUSH_PERMISSION_CHANGED, {"status": self.permission_status.value})
        return self.permission_status

    async def on_token_received(self, token: Union[bytes, str]) -> str:
        """Cache the platform token locally and store it as the user's single device record."""
        value = token.hex() if isinstance(token, (bytes, bytearray)) else token
        self.device_token = value
        try:
            self.kv.set(constants.DEVICE_TOKEN_KEY, value.encode())
        except KeyValueStoreError as e:
            logger.warning(f"Failed to cache device token: {e}")

        uid = self.identity.current_user_id()
        if uid is None:
            raise self._record(UserNotAuthenticatedError())

        record = DeviceTokenRecord(token=value, user_id=uid, platform=self.platform)
        data = record.to_document()
        data["lastUpdated"] = SERVER_TIMESTAMP
        try:
            await self.store.set(constants.NOTIFICATION_TOKENS_COLLECTION, uid, data, merge=True)
        except RemoteStoreError as e:
            logger.error(f"Failed to register device token: {e}")
            raise self._record(TokenPersistenceError()) from e
        logger.info(f"Registered device token for {uid}")
        return value

    def on_registration_failed(self, error: BaseException) -> None:
        logger.error(f"Failed to register for remote notifications: {error}")
        raise self._record(RegistrationFailedError()) from error

    def cached_token(self) -> Optional[str]:
        try:
            raw = self.kv.get(constants.DEVICE_TOKEN_KEY)
        except KeyValueStoreError as e:
            logger.warning(f"Failed to read cached device token: {e}")
            return None
        return raw.decode() if raw else None

    def _record(self, error: SyncError) -> SyncError:
        self.error = error
        return error

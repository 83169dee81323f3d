from dataclasses import dataclass
from typing import List, Optional, Sequence

from .core import constants


class SyncError(Exception):
    """Base class for every failure surfaced by the sync core.

    ``description`` is short, stable and safe to show to a user; the
    underlying transport error (if any) is kept on ``__cause__``.
    """

    description: str = constants.MSG_UNKNOWN_ERROR

    def __init__(self, description: Optional[str] = None):
        if description is not None:
            self.description = description
        super().__init__(self.description)


class RemoteStoreError(Exception):
    """Raised by document store adapters; wrapped before reaching callers."""


class KeyValueStoreError(Exception):
    """Raised by local key-value adapters."""


class UserNotAuthenticatedError(SyncError):
    description = "User is not authenticated"


class PermissionDeniedError(SyncError):
    description = constants.MSG_PERMISSION_DENIED


class RegistrationFailedError(SyncError):
    description = constants.MSG_REGISTRATION_FAILED


class TokenPersistenceError(SyncError):
    description = constants.MSG_TOKEN_REGISTRATION_FAILED


class ReadFailedError(SyncError):
    description = "Failed to load data"


class WriteFailedError(SyncError):
    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Failed to {operation}")


class BatchWriteFailedError(SyncError):
    description = "Failed to update notifications"


class EncodeError(SyncError):
    description = "Failed to encode data"


class DecodeError(SyncError):
    description = "Failed to read stored data"


class ListenerFailedError(SyncError):
    description = constants.MSG_NETWORK_ERROR


class SettingsNotLoadedError(SyncError):
    description = "Settings have not been loaded"


@dataclass(frozen=True)
class FieldViolation:
    field: str
    message: str


class ValidationFailedError(SyncError):
    def __init__(self, violations: Sequence[FieldViolation]):
        self.violations: List[FieldViolation] = list(violations)
        super().__init__(
            "Validation errors: " + ", ".join(v.message for v in self.violations)
        )


class MigrationFailedError(SyncError):
    def __init__(self, from_version: int, to_version: int, reason: str = "unsupported version"):
        self.from_version = from_version
        self.to_version = to_version
        self.reason = reason
        super().__init__(
            f"Migration failed: cannot migrate settings from version {from_version} to {to_version} ({reason})"
        )


class InvalidTransitionError(SyncError):
    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot move notification from {current} to {requested}")


class NotificationNotFoundError(SyncError):
    def __init__(self, notification_id: str):
        self.notification_id = notification_id
        super().__init__(f"Notification {notification_id} not found")

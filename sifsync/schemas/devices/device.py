# sifsync/schemas/devices/device.py
from datetime import datetime, timezone
from enum import Enum

from pydantic import Field

from ..common.common import DocumentModel


class PermissionStatus(str, Enum):
    NOT_DETERMINED = "not_determined"
    GRANTED = "granted"
    DENIED = "denied"


class DeviceTokenRecord(DocumentModel):
    token: str
    user_id: str
    platform: str
    last_updated: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    is_active: bool = True

# sifsync/schemas/notifications/preferences.py
from datetime import time
from enum import Enum
from typing import Dict, List, Optional

from pydantic import Field

from ..common.common import DocumentModel
from .notification import NotificationAction, NotificationCategory, NotificationPriority, NotificationType


class DigestFrequency(str, Enum):
    HOURLY = "hourly"
    DAILY = "daily"
    WEEKLY = "weekly"
    NEVER = "never"

    @property
    def interval_seconds(self) -> Optional[int]:
        return {
            DigestFrequency.HOURLY: 3600,
            DigestFrequency.DAILY: 86400,
            DigestFrequency.WEEKLY: 604800,
        }.get(self)


class CategoryPreference(DocumentModel):
    is_enabled: bool = True
    sound_enabled: bool = True
    badge_enabled: bool = True
    priority: NotificationPriority = NotificationPriority.NORMAL


class TypePreference(DocumentModel):
    is_enabled: bool = True
    sound_enabled: bool = True
    badge_enabled: bool = True
    custom_sound: Optional[str] = None
    custom_actions: Optional[List[NotificationAction]] = None


def _default_categories() -> Dict[NotificationCategory, CategoryPreference]:
    return {category: CategoryPreference() for category in NotificationCategory}


def _default_types() -> Dict[NotificationType, TypePreference]:
    return {notification_type: TypePreference() for notification_type in NotificationType}


class NotificationPreferences(DocumentModel):
    user_id: str
    is_enabled: bool = True
    sound_enabled: bool = True
    badge_enabled: bool = True
    banner_enabled: bool = True
    lock_screen_enabled: bool = True
    notification_center_enabled: bool = True

    category_preferences: Dict[NotificationCategory, CategoryPreference] = Field(default_factory=_default_categories)
    type_preferences: Dict[NotificationType, TypePreference] = Field(default_factory=_default_types)

    quiet_hours_enabled: bool = False
    quiet_hours_start: time = time(22, 0)
    quiet_hours_end: time = time(8, 0)

    digest_enabled: bool = False
    digest_frequency: DigestFrequency = DigestFrequency.DAILY
    max_notifications_per_hour: int = Field(default=10, ge=0)

from dataclasses import dataclass
from datetime import datetime, time
from typing import Optional, Union

from ...schemas import NotificationPreferences, NotificationType


@dataclass(frozen=True)
class DeliveryDecision:
    allowed: bool
    play_sound: bool
    show_badge: bool
    quiet_hours: bool

    @property
    def should_alert(self) -> bool:
        return self.allowed and not self.quiet_hours


def _minutes(value: Union[datetime, time]) -> int:
    return value.hour * 60 + value.minute


@dataclass(frozen=True)
class PreferenceEvaluator:
    """Answers delivery questions for one preferences document. Pure."""

    preferences: NotificationPreferences

    def is_allowed(self, notification_type: NotificationType) -> bool:
        if not self.preferences.is_enabled:
            return False
        category = self.preferences.category_preferences.get(notification_type.category)
        if category is not None and not category.is_enabled:
            return False
        override = self.preferences.type_preferences.get(notification_type)
        if override is not None and not override.is_enabled:
            return False
        return True

    def should_play_sound(self, notification_type: NotificationType) -> bool:
        if not self.preferences.sound_enabled:
            return False
        category = self.preferences.category_preferences.get(notification_type.category)
        if category is not None and not category.sound_enabled:
            return False
        override = self.preferences.type_preferences.get(notification_type)
        if override is not None and not override.sound_enabled:
            return False
        return True

    def should_show_badge(self, notification_type: NotificationType) -> bool:
        if not self.preferences.badge_enabled:
            return False
        category = self.preferences.category_preferences.get(notification_type.category)
        if category is not None and not category.badge_enabled:
            return False
        override = self.preferences.type_preferences.get(notification_type)
        if override is not None and not override.badge_enabled:
            return False
        return True

    def is_quiet_hours_active(self, now: Union[datetime, time]) -> bool:
        """Hour/minute comparison only; a window with start > end spans midnight."""
        if not self.preferences.quiet_hours_enabled:
            return False
        current = _minutes(now)
        start = _minutes(self.preferences.quiet_hours_start)
        end = _minutes(self.preferences.quiet_hours_end)
        if start <= end:
            return start <= current <= end
        return current >= start or current <= end

    def custom_sound(self, notification_type: NotificationType) -> Optional[str]:
        override = self.preferences.type_preferences.get(notification_type)
        return override.custom_sound if override is not None else None

    def evaluate(self, notification_type: NotificationType, now: Union[datetime, time]) -> DeliveryDecision:
        return DeliveryDecision(
            allowed=self.is_allowed(notification_type),
            play_sound=self.should_play_sound(notification_type),
            show_badge=self.should_show_badge(notification_type),
            quiet_hours=self.is_quiet_hours_active(now),
        )

# sifsync/schemas/settings/settings.py
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import Field

from ..common.common import DocumentModel
from ...core import constants


class ProfileVisibility(str, Enum):
    PUBLIC = "public"
    FRIENDS_ONLY = "friends"
    PRIVATE = "private"


class NotificationFrequency(str, Enum):
    IMMEDIATE = "immediate"
    NORMAL = "normal"
    DIGEST = "digest"
    MINIMAL = "minimal"


class AppTheme(str, Enum):
    LIGHT = "light"
    DARK = "dark"
    SYSTEM = "system"


class TextSize(str, Enum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    EXTRA_LARGE = "extraLarge"


class LayoutDensity(str, Enum):
    COMPACT = "compact"
    COMFORTABLE = "comfortable"
    SPACIOUS = "spacious"


class ColorBlindnessType(str, Enum):
    NONE = "none"
    DEUTERANOPIA = "deuteranopia"
    PROTANOPIA = "protanopia"
    TRITANOPIA = "tritanopia"


class ProfileSettings(DocumentModel):
    display_name: str = ""
    bio: str = ""
    location: str = ""
    website: str = ""
    phone_number: str = ""
    skills: List[str] = Field(default_factory=list)
    expertise: List[str] = Field(default_factory=list)
    profile_image_url: Optional[str] = Field(default=None, alias="profileImageURL")
    is_profile_complete: bool = False


class PrivacySettings(DocumentModel):
    profile_visibility: ProfileVisibility = ProfileVisibility.FRIENDS_ONLY
    allow_direct_messages: bool = True
    allow_sif_from_strangers: bool = Field(default=False, alias="allowSIFFromStrangers")
    show_online_status: bool = True
    share_activity_status: bool = True
    allow_data_collection: bool = True
    allow_analytics: bool = True
    blocked_users: List[str] = Field(default_factory=list)
    allow_location_sharing: bool = False
    allow_contact_sync: bool = False


class NotificationSettings(DocumentModel):
    push_notifications_enabled: bool = True
    email_notifications_enabled: bool = True
    in_app_alerts_enabled: bool = True

    new_sif_notifications: bool = Field(default=True, alias="newSIFNotifications")
    sif_delivered_notifications: bool = Field(default=True, alias="sifDeliveredNotifications")
    sif_opened_notifications: bool = Field(default=False, alias="sifOpenedNotifications")
    template_update_notifications: bool = True

    friend_request_notifications: bool = True
    message_notifications: bool = True
    mention_notifications: bool = True

    marketing_emails: bool = False
    product_updates: bool = True
    weekly_digest: bool = True

    notification_frequency: NotificationFrequency = NotificationFrequency.NORMAL
    quiet_hours_enabled: bool = False
    quiet_hours_start: str = constants.DEFAULT_QUIET_HOURS_START
    quiet_hours_end: str = constants.DEFAULT_QUIET_HOURS_END


class AppearanceSettings(DocumentModel):
    theme: AppTheme = AppTheme.SYSTEM
    text_size: TextSize = TextSize.MEDIUM
    layout_density: LayoutDensity = LayoutDensity.COMFORTABLE
    reduced_motion: bool = False
    high_contrast: bool = False
    color_blindness_support: ColorBlindnessType = ColorBlindnessType.NONE
    preferred_language: str = constants.DEFAULT_LANGUAGE
    use_24_hour_format: bool = Field(default=False, alias="use24HourFormat")
    show_preview_images: bool = True
    compact_mode: bool = False


class SettingsSection(str, Enum):
    PROFILE = "profile_settings"
    PRIVACY = "privacy_settings"
    NOTIFICATIONS = "notification_settings"
    APPEARANCE = "appearance_settings"


SECTION_MODELS = {
    SettingsSection.PROFILE: ProfileSettings,
    SettingsSection.PRIVACY: PrivacySettings,
    SettingsSection.NOTIFICATIONS: NotificationSettings,
    SettingsSection.APPEARANCE: AppearanceSettings,
}


class UserSettings(DocumentModel):
    uid: str
    profile_settings: ProfileSettings = Field(default_factory=ProfileSettings)
    privacy_settings: PrivacySettings = Field(default_factory=PrivacySettings)
    notification_settings: NotificationSettings = Field(default_factory=NotificationSettings)
    appearance_settings: AppearanceSettings = Field(default_factory=AppearanceSettings)
    last_updated: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    version: int = constants.CURRENT_SETTINGS_VERSION

from typing import Optional

from ...schemas import (
    AppearanceSettings,
    NotificationSettings,
    PrivacySettings,
    ProfileSettings,
    ProfileVisibility,
    UserSettings,
)


def create_default_settings(uid: str) -> UserSettings:
    return UserSettings(uid=uid)


def safe_default_settings(uid: str) -> UserSettings:
    """Defaults for a brand-new user: conservative privacy and notification choices."""
    privacy = PrivacySettings(
        profile_visibility=ProfileVisibility.FRIENDS_ONLY,
        allow_sif_from_strangers=False,
        allow_data_collection=False,
        allow_analytics=False,
        allow_location_sharing=False,
        allow_contact_sync=False,
    )
    notifications = NotificationSettings(
        marketing_emails=False,
        weekly_digest=False,
        sif_opened_notifications=False,
    )
    return UserSettings(uid=uid, privacy_settings=privacy, notification_settings=notifications)


def factory_reset(uid: str, display_name: Optional[str] = None) -> UserSettings:
    settings = create_default_settings(uid)
    if display_name:
        settings.profile_settings.display_name = display_name
    return settings


def default_sections() -> dict:
    """Wire form of every sub-document, used to backfill old documents."""
    return {
        "profileSettings": ProfileSettings().to_document(),
        "privacySettings": PrivacySettings().to_document(),
        "notificationSettings": NotificationSettings().to_document(),
        "appearanceSettings": AppearanceSettings().to_document(),
    }

import re
from typing import List
from urllib.parse import urlparse

from ...core import constants
from ...exceptions import FieldViolation
from ...schemas import NotificationSettings, PrivacySettings, ProfileSettings, UserSettings

_PHONE_RE = re.compile(r"^\+?[1-9]\d{0,15}$")
_TIME_RE = re.compile(r"^([01]?[0-9]|2[0-3]):[0-5][0-9]$")


def is_valid_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def is_valid_phone_number(value: str) -> bool:
    return bool(_PHONE_RE.match(value))


def is_valid_time(value: str) -> bool:
    return bool(_TIME_RE.match(value))


def validate_profile_settings(profile: ProfileSettings) -> List[FieldViolation]:
    errors: List[FieldViolation] = []

    if not profile.display_name:
        errors.append(FieldViolation("profileSettings.displayName", "Display name cannot be empty"))
    elif len(profile.display_name) > constants.MAX_DISPLAY_NAME_LENGTH:
        errors.append(FieldViolation(
            "profileSettings.displayName",
            f"Display name must be {constants.MAX_DISPLAY_NAME_LENGTH} characters or less",
        ))

    if len(profile.bio) > constants.MAX_BIO_LENGTH:
        errors.append(FieldViolation("profileSettings.bio", f"Bio must be {constants.MAX_BIO_LENGTH} characters or less"))

    if profile.website and not is_valid_url(profile.website):
        errors.append(FieldViolation("profileSettings.website", "Please enter a valid website URL"))

    if profile.phone_number and not is_valid_phone_number(profile.phone_number):
        errors.append(FieldViolation("profileSettings.phoneNumber", "Please enter a valid phone number"))

    if len(profile.skills) > constants.MAX_SKILLS_COUNT:
        errors.append(FieldViolation("profileSettings.skills", f"You can add up to {constants.MAX_SKILLS_COUNT} skills"))

    if len(profile.expertise) > constants.MAX_EXPERTISE_COUNT:
        errors.append(FieldViolation(
            "profileSettings.expertise",
            f"You can add up to {constants.MAX_EXPERTISE_COUNT} areas of expertise",
        ))

    return errors


def validate_privacy_settings(privacy: PrivacySettings) -> List[FieldViolation]:
    if len(privacy.blocked_users) > constants.MAX_BLOCKED_USERS_COUNT:
        return [FieldViolation(
            "privacySettings.blockedUsers",
            f"You can block up to {constants.MAX_BLOCKED_USERS_COUNT} users",
        )]
    return []


def validate_notification_settings(notifications: NotificationSettings) -> List[FieldViolation]:
    if not is_valid_time(notifications.quiet_hours_start) or not is_valid_time(notifications.quiet_hours_end):
        return [FieldViolation("notificationSettings.quietHours", "Invalid quiet hours format")]
    return []


def validate_user_settings(settings: UserSettings) -> List[FieldViolation]:
    errors: List[FieldViolation] = []
    if not settings.uid:
        errors.append(FieldViolation("uid", "Settings must belong to a user"))
    errors.extend(validate_profile_settings(settings.profile_settings))
    errors.extend(validate_privacy_settings(settings.privacy_settings))
    errors.extend(validate_notification_settings(settings.notification_settings))
    return errors

# sifsync/core/constants.py

# Remote collections
NOTIFICATIONS_COLLECTION = "notifications"
NOTIFICATION_PREFERENCES_COLLECTION = "notification_preferences"
NOTIFICATION_TOKENS_COLLECTION = "notification_tokens"
USER_SETTINGS_COLLECTION = "user_settings"

# Local key-value keys
BADGE_COUNT_KEY = "notification_badge_count"
DEVICE_TOKEN_KEY = "notification_device_token"
OFFLINE_SETTINGS_KEY = "offline_settings"
LAST_SETTINGS_SYNC_KEY = "last_settings_sync_date"
SETTINGS_BACKUP_PREFIX = "settings_backup_"

# Settings schema
CURRENT_SETTINGS_VERSION = 1

# Settings validation limits
MAX_DISPLAY_NAME_LENGTH = 50
MAX_BIO_LENGTH = 500
MAX_SKILLS_COUNT = 10
MAX_EXPERTISE_COUNT = 5
MAX_BLOCKED_USERS_COUNT = 1000

DEFAULT_QUIET_HOURS_START = "22:00"
DEFAULT_QUIET_HOURS_END = "08:00"
DEFAULT_LANGUAGE = "en"

# Notification center
MAX_NOTIFICATIONS_TO_SHOW = 50
ALERT_WINDOW_SECONDS = 3600

# Push response action identifiers
DEFAULT_ACTION_IDENTIFIER = "com.apple.UNNotificationDefaultActionIdentifier"
REPLY_ACTION = "REPLY_ACTION"
MARK_AS_READ_ACTION = "MARK_AS_READ_ACTION"
DELETE_ACTION = "DELETE_ACTION"

# Push payload keys
PAYLOAD_NOTIFICATION_ID = "notification_id"
PAYLOAD_SIF_ID = "sif_id"
PAYLOAD_DEEP_LINK_URL = "deep_link_url"
PAYLOAD_REPLY_TEXT = "reply_text"

# In-process events
EVENT_SHOW_IN_APP_NOTIFICATION = "show_in_app_notification"
EVENT_HANDLE_DEEP_LINK = "handle_deep_link"
EVENT_NAVIGATE_TO_NOTIFICATION = "navigate_to_notification"
EVENT_HANDLE_NOTIFICATION_REPLY = "handle_notification_reply"
EVENT_PUSH_PERMISSION_CHANGED = "push_permission_changed"

DEEP_LINK_SCHEME = "isayitforward"

# User-facing error messages
MSG_PERMISSION_DENIED = "Notification permissions are required to receive updates."
MSG_REGISTRATION_FAILED = "Failed to register for notifications. Please try again."
MSG_TOKEN_REGISTRATION_FAILED = "Failed to register device token."
MSG_NETWORK_ERROR = "Network error occurred while syncing notifications."
MSG_UNKNOWN_ERROR = "An unknown error occurred."

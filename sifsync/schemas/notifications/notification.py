# sifsync/schemas/notifications/notification.py
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import ConfigDict, Field, field_validator, model_validator

from ..common.common import DocumentModel
from .state import NotificationState
from ...core.constants import DEEP_LINK_SCHEME


class NotificationPriority(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {
    NotificationPriority.LOW: 0,
    NotificationPriority.NORMAL: 1,
    NotificationPriority.HIGH: 2,
    NotificationPriority.CRITICAL: 3,
}


class NotificationCategory(str, Enum):
    SIF = "sif"
    SOCIAL = "social"
    SYSTEM = "system"
    TEMPLATE = "template"
    ACHIEVEMENT = "achievement"


class NotificationType(str, Enum):
    # SIF
    SIF_RECEIVED = "sif_received"
    SIF_DELIVERED = "sif_delivered"
    SIF_SCHEDULED = "sif_scheduled"
    SIF_REMINDER = "sif_reminder"
    # Social
    FRIEND_REQUEST = "friend_request"
    FRIEND_ACCEPTED = "friend_accepted"
    MESSAGE_RECEIVED = "message_received"
    # System
    SYSTEM_UPDATE = "system_update"
    ACCOUNT_UPDATE = "account_update"
    SECURITY_ALERT = "security_alert"
    # Templates
    TEMPLATE_SHARED = "template_shared"
    TEMPLATE_UPDATED = "template_updated"
    # Achievements
    ACHIEVEMENT = "achievement"
    MILESTONE = "milestone"

    @property
    def category(self) -> NotificationCategory:
        return _TYPE_CATEGORY[self]

    @property
    def default_priority(self) -> NotificationPriority:
        if self is NotificationType.SECURITY_ALERT:
            return NotificationPriority.CRITICAL
        if self in (NotificationType.SIF_RECEIVED, NotificationType.FRIEND_REQUEST, NotificationType.MESSAGE_RECEIVED):
            return NotificationPriority.HIGH
        if self in (NotificationType.SIF_DELIVERED, NotificationType.SIF_REMINDER, NotificationType.FRIEND_ACCEPTED):
            return NotificationPriority.NORMAL
        return NotificationPriority.LOW

    @property
    def allows_actions(self) -> bool:
        return self in (NotificationType.SIF_RECEIVED, NotificationType.FRIEND_REQUEST, NotificationType.MESSAGE_RECEIVED)


_TYPE_CATEGORY = {
    NotificationType.SIF_RECEIVED: NotificationCategory.SIF,
    NotificationType.SIF_DELIVERED: NotificationCategory.SIF,
    NotificationType.SIF_SCHEDULED: NotificationCategory.SIF,
    NotificationType.SIF_REMINDER: NotificationCategory.SIF,
    NotificationType.FRIEND_REQUEST: NotificationCategory.SOCIAL,
    NotificationType.FRIEND_ACCEPTED: NotificationCategory.SOCIAL,
    NotificationType.MESSAGE_RECEIVED: NotificationCategory.SOCIAL,
    NotificationType.SYSTEM_UPDATE: NotificationCategory.SYSTEM,
    NotificationType.ACCOUNT_UPDATE: NotificationCategory.SYSTEM,
    NotificationType.SECURITY_ALERT: NotificationCategory.SYSTEM,
    NotificationType.TEMPLATE_SHARED: NotificationCategory.TEMPLATE,
    NotificationType.TEMPLATE_UPDATED: NotificationCategory.TEMPLATE,
    NotificationType.ACHIEVEMENT: NotificationCategory.ACHIEVEMENT,
    NotificationType.MILESTONE: NotificationCategory.ACHIEVEMENT,
}


class ActionType(str, Enum):
    REPLY = "reply"
    ACCEPT = "accept"
    DECLINE = "decline"
    VIEW = "view"
    DELETE = "delete"
    ARCHIVE = "archive"
    SHARE = "share"
    REMIND = "remind"
    OPEN_SIF = "open_sif"
    OPEN_PROFILE = "open_profile"
    OPEN_CHAT = "open_chat"
    OPEN_TEMPLATE = "open_template"
    DISMISS = "dismiss"


class ActionStyle(str, Enum):
    DEFAULT = "default"
    DESTRUCTIVE = "destructive"
    CANCEL = "cancel"
    PRIMARY = "primary"


class NotificationAction(DocumentModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    title: str
    type: ActionType
    style: ActionStyle = ActionStyle.DEFAULT
    data: Optional[Dict[str, str]] = None


def _action(title: str, action_type: ActionType, style: ActionStyle = ActionStyle.DEFAULT) -> NotificationAction:
    return NotificationAction(title=title, type=action_type, style=style)


def actions_for(notification_type: NotificationType) -> List[NotificationAction]:
    """Default action set offered with a notification of the given type."""
    reply = _action("Reply", ActionType.REPLY, ActionStyle.PRIMARY)
    archive = _action("Archive", ActionType.ARCHIVE)
    view = _action("View", ActionType.VIEW)
    dismiss = _action("Dismiss", ActionType.DISMISS, ActionStyle.CANCEL)
    share = _action("Share", ActionType.SHARE)

    if notification_type is NotificationType.SIF_RECEIVED:
        return [_action("Open SIF", ActionType.OPEN_SIF, ActionStyle.PRIMARY), reply, archive]
    if notification_type is NotificationType.FRIEND_REQUEST:
        return [
            _action("Accept", ActionType.ACCEPT, ActionStyle.PRIMARY),
            _action("Decline", ActionType.DECLINE, ActionStyle.DESTRUCTIVE),
            _action("View Profile", ActionType.OPEN_PROFILE),
        ]
    if notification_type is NotificationType.MESSAGE_RECEIVED:
        return [reply, _action("Open Chat", ActionType.OPEN_CHAT, ActionStyle.PRIMARY), archive]
    if notification_type is NotificationType.TEMPLATE_SHARED:
        return [_action("View Template", ActionType.OPEN_TEMPLATE, ActionStyle.PRIMARY), share, dismiss]
    if notification_type in (NotificationType.ACHIEVEMENT, NotificationType.MILESTONE):
        return [view, share, dismiss]
    return [view, dismiss]


class NotificationPayload(DocumentModel):
    sif_id: Optional[str] = None
    sender_id: Optional[str] = None
    template_id: Optional[str] = None
    chat_id: Optional[str] = None
    deep_link: Optional[str] = None
    metadata: Optional[Dict[str, str]] = None

    @classmethod
    def for_sif(cls, sif_id: str, sender_id: str) -> "NotificationPayload":
        return cls(sif_id=sif_id, sender_id=sender_id, deep_link=f"{DEEP_LINK_SCHEME}://sif/{sif_id}")

    @classmethod
    def for_friend_request(cls, sender_id: str) -> "NotificationPayload":
        return cls(sender_id=sender_id, deep_link=f"{DEEP_LINK_SCHEME}://profile/{sender_id}")

    @classmethod
    def for_message(cls, chat_id: str, sender_id: str) -> "NotificationPayload":
        return cls(sender_id=sender_id, chat_id=chat_id, deep_link=f"{DEEP_LINK_SCHEME}://chat/{chat_id}")

    @classmethod
    def for_template(cls, template_id: str, sender_id: Optional[str] = None) -> "NotificationPayload":
        return cls(sender_id=sender_id, template_id=template_id, deep_link=f"{DEEP_LINK_SCHEME}://template/{template_id}")

    @classmethod
    def for_achievement(cls, achievement_id: str, metadata: Optional[Dict[str, str]] = None) -> "NotificationPayload":
        return cls(deep_link=f"{DEEP_LINK_SCHEME}://achievement/{achievement_id}", metadata=metadata)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Notification(DocumentModel):
    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    title: str
    body: str
    type: NotificationType
    category: Optional[NotificationCategory] = None
    payload: Optional[NotificationPayload] = None
    created_at: datetime = Field(default_factory=_utcnow)
    scheduled_at: Optional[datetime] = None
    is_read: bool = False
    state: NotificationState = NotificationState.PENDING
    sender_uid: Optional[str] = Field(default=None, alias="senderUID")
    recipient_uid: str = Field(alias="recipientUID")
    priority: NotificationPriority = NotificationPriority.NORMAL
    actions: List[NotificationAction] = Field(default_factory=list)

    @field_validator("created_at", mode="before")
    @classmethod
    def _pending_server_timestamp(cls, value):
        # A locally-echoed write can carry an unresolved server timestamp.
        return _utcnow() if value is None else value

    @field_validator("created_at", "scheduled_at", mode="after")
    @classmethod
    def _assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        # Push payloads often carry naive ISO timestamps.
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @model_validator(mode="after")
    def _derive_category(self):
        if self.category is None:
            object.__setattr__(self, "category", self.type.category)
        return self

    def to_document(self) -> Dict[str, Any]:
        # Timestamps stay native so the store can order by them.
        data = super().to_document()
        data["createdAt"] = self.created_at
        data["scheduledAt"] = self.scheduled_at
        return data

    @property
    def is_scheduled(self) -> bool:
        return self.scheduled_at is not None and self.scheduled_at > _utcnow()

    @property
    def is_overdue(self) -> bool:
        if self.scheduled_at is None:
            return False
        return self.scheduled_at < _utcnow() and self.state is NotificationState.PENDING

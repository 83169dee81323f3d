"""Interpret push-transport callbacks: foreground presentation and action responses."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Mapping, Optional

from ...core import constants
from ...schemas import Notification, NotificationPreferences
from .notification_store import NotificationStateStore, PreferencesProvider
from .preference_evaluator import PreferenceEvaluator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PresentationOptions:
    banner: bool
    sound: bool
    badge: bool

    @property
    def silent(self) -> bool:
        return not (self.banner or self.sound or self.badge)


def _local_now() -> datetime:
    return datetime.now().astimezone()


@dataclass
class NotificationResponseHandler:
    notifications: NotificationStateStore
    preferences: PreferencesProvider
    clock: Callable[[], datetime] = _local_now

    def presentation_options(self, notification: Notification, now: Optional[datetime] = None) -> PresentationOptions:
        """How a push that arrives while the app is in the foreground is shown."""
        preferences = self.preferences(notification.recipient_uid) or NotificationPreferences(user_id=notification.recipient_uid)
        decision = PreferenceEvaluator(preferences).evaluate(notification.type, now or self.clock())
        if not decision.should_alert:
            return PresentationOptions(banner=False, sound=False, badge=decision.allowed and decision.show_badge)
        return PresentationOptions(
            banner=preferences.banner_enabled,
            sound=decision.play_sound,
            badge=decision.show_badge,
        )

    async def handle_response(self, action_identifier: str, user_info: Mapping[str, Any]) -> None:
        notification_id = user_info.get(constants.PAYLOAD_NOTIFICATION_ID)
        if not isinstance(notification_id, str):
            logger.debug(f"Ignoring response {action_identifier} without a notification id")
            return

        publisher = self.notifications.publisher
        if action_identifier == constants.DEFAULT_ACTION_IDENTIFIER:
            await self.notifications.mark_read(notification_id)
            deep_link = user_info.get(constants.PAYLOAD_DEEP_LINK_URL)
            if isinstance(deep_link, str) and deep_link:
                publisher.publish(constants.EVENT_HANDLE_DEEP_LINK, deep_link)
            publisher.publish(constants.EVENT_NAVIGATE_TO_NOTIFICATION, notification_id)
        elif action_identifier == constants.MARK_AS_READ_ACTION:
            await self.notifications.mark_read(notification_id)
        elif action_identifier == constants.DELETE_ACTION:
            await self.notifications.delete(notification_id)
        elif action_identifier == constants.REPLY_ACTION:
            await self.notifications.mark_read(notification_id)
            sif_id = user_info.get(constants.PAYLOAD_SIF_ID)
            if isinstance(sif_id, str):
                publisher.publish(constants.EVENT_HANDLE_NOTIFICATION_REPLY, {
                    "sifId": sif_id,
                    "replyText": user_info.get(constants.PAYLOAD_REPLY_TEXT, ""),
                })
        else:
            logger.debug(f"Unhandled notification action {action_identifier}")

import asyncio
import time
from datetime import datetime, timedelta, timezone

import pytest

from sifsync.application.services.notification_responses import NotificationResponseHandler
from sifsync.application.services.notification_store import NotificationStateStore
from sifsync.core import constants
from sifsync.infrastructure.audit.std_logger import StdAuditLogger
from sifsync.infrastructure.events.in_process import InProcessEventPublisher
from sifsync.infrastructure.kv.memory_kv import InMemoryKeyValueStore
from sifsync.infrastructure.memory.memory_store import InMemoryDocumentStore
from sifsync.infrastructure.throttle.memory_throttle import InMemoryAlertThrottle
from sifsync.schemas import Notification, NotificationPreferences, NotificationType

NOON = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)
MIDNIGHT = datetime(2026, 6, 1, 23, 45, tzinfo=timezone.utc)


async def settle():
    for _ in range(10):
        await asyncio.sleep(0)


class Harness:
    def __init__(self, preferences=None):
        self.store = InMemoryDocumentStore()
        self.publisher = InProcessEventPublisher()
        self.events = []
        for name in (
            constants.EVENT_HANDLE_DEEP_LINK,
            constants.EVENT_NAVIGATE_TO_NOTIFICATION,
            constants.EVENT_HANDLE_NOTIFICATION_REPLY,
        ):
            self.publisher.subscribe(name, lambda payload, name=name: self.events.append((name, payload)))
        self.preferences = preferences
        self.notifications = NotificationStateStore(
            store=self.store,
            kv=InMemoryKeyValueStore(),
            publisher=self.publisher,
            throttle=InMemoryAlertThrottle(),
            audit=StdAuditLogger(),
            preferences=lambda uid: self.preferences,
        )
        self.handler = NotificationResponseHandler(self.notifications, lambda uid: self.preferences)

    async def start(self, *ids):
        for nid in ids:
            n = Notification(title="t", body="b", type=NotificationType.SIF_RECEIVED, recipient_uid="u1")
            await self.store.set(constants.NOTIFICATIONS_COLLECTION, nid, n.to_document())
        self.notifications.subscribe("u1")
        await settle()


def note(notification_type=NotificationType.SIF_RECEIVED):
    return Notification(id="n1", title="t", body="b", type=notification_type, recipient_uid="u1")


def test_presentation_with_default_preferences():
    options = Harness().handler.presentation_options(note(), NOON)
    assert (options.banner, options.sound, options.badge) == (True, True, True)


def test_presentation_during_quiet_hours_is_silent_but_badged():
    h = Harness(NotificationPreferences(user_id="u1", quiet_hours_enabled=True))
    options = h.handler.presentation_options(note(), MIDNIGHT)
    assert (options.banner, options.sound, options.badge) == (False, False, True)


def test_presentation_for_disabled_notifications():
    h = Harness(NotificationPreferences(user_id="u1", is_enabled=False))
    assert h.handler.presentation_options(note(), NOON).silent


def test_presentation_respects_banner_switch():
    h = Harness(NotificationPreferences(user_id="u1", banner_enabled=False))
    options = h.handler.presentation_options(note(), NOON)
    assert (options.banner, options.sound, options.badge) == (False, True, True)


@pytest.mark.asyncio
async def test_default_tap_marks_read_and_navigates():
    h = Harness()
    await h.start("n1")

    await h.handler.handle_response(constants.DEFAULT_ACTION_IDENTIFIER, {
        constants.PAYLOAD_NOTIFICATION_ID: "n1",
        constants.PAYLOAD_DEEP_LINK_URL: "isayitforward://sif/s1",
    })

    assert h.notifications.get("n1").is_read is True
    assert h.events == [
        (constants.EVENT_HANDLE_DEEP_LINK, "isayitforward://sif/s1"),
        (constants.EVENT_NAVIGATE_TO_NOTIFICATION, "n1"),
    ]
    h.notifications.unsubscribe()


@pytest.mark.asyncio
async def test_mark_read_and_delete_actions():
    h = Harness()
    await h.start("n1", "n2")

    await h.handler.handle_response(constants.MARK_AS_READ_ACTION, {constants.PAYLOAD_NOTIFICATION_ID: "n1"})
    await h.handler.handle_response(constants.DELETE_ACTION, {constants.PAYLOAD_NOTIFICATION_ID: "n2"})

    assert h.notifications.get("n1").is_read is True
    assert h.notifications.get("n2") is None
    assert await h.store.get(constants.NOTIFICATIONS_COLLECTION, "n2") is None
    assert h.events == []
    h.notifications.unsubscribe()


@pytest.mark.asyncio
async def test_reply_marks_read_and_forwards_text():
    h = Harness()
    await h.start("n1")

    await h.handler.handle_response(constants.REPLY_ACTION, {
        constants.PAYLOAD_NOTIFICATION_ID: "n1",
        constants.PAYLOAD_SIF_ID: "s1",
        constants.PAYLOAD_REPLY_TEXT: "Thank you!",
    })

    assert h.notifications.get("n1").is_read is True
    assert h.events == [(constants.EVENT_HANDLE_NOTIFICATION_REPLY, {"sifId": "s1", "replyText": "Thank you!"})]
    h.notifications.unsubscribe()


@pytest.mark.asyncio
async def test_response_without_notification_id_is_ignored():
    h = Harness()
    await h.start("n1")
    await h.handler.handle_response(constants.DEFAULT_ACTION_IDENTIFIER, {constants.PAYLOAD_SIF_ID: "s1"})
    await h.handler.handle_response("UNKNOWN_ACTION", {constants.PAYLOAD_NOTIFICATION_ID: "n1"})
    assert h.notifications.get("n1").is_read is False
    assert h.events == []
    h.notifications.unsubscribe()


def test_default_clock_is_local_time(monkeypatch):
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is not available")
    monkeypatch.setenv("TZ", "EST+05")
    time.tzset()
    try:
        local = datetime.now()
        h = Harness(NotificationPreferences(
            user_id="u1",
            quiet_hours_enabled=True,
            quiet_hours_start=(local - timedelta(minutes=30)).time(),
            quiet_hours_end=(local + timedelta(minutes=30)).time(),
        ))
        assert h.handler.clock().utcoffset() == timedelta(hours=-5)
        assert h.handler.presentation_options(note()).banner is False
    finally:
        monkeypatch.undo()
        time.tzset()

from datetime import datetime, time, timezone

import pytest

from sifsync.application.services.preference_evaluator import PreferenceEvaluator
from sifsync.schemas import (
    CategoryPreference,
    NotificationCategory,
    NotificationPreferences,
    NotificationType,
    TypePreference,
)


def prefs(**kwargs) -> NotificationPreferences:
    return NotificationPreferences(user_id="u1", **kwargs)


def test_defaults_allow_every_type():
    evaluator = PreferenceEvaluator(prefs())
    for notification_type in NotificationType:
        assert evaluator.is_allowed(notification_type) is True
        assert evaluator.should_play_sound(notification_type) is True
        assert evaluator.should_show_badge(notification_type) is True


def test_global_switch_overrides_everything():
    evaluator = PreferenceEvaluator(prefs(is_enabled=False))
    assert not any(evaluator.is_allowed(t) for t in NotificationType)


def test_disabled_category_blocks_only_its_types():
    p = prefs()
    p.category_preferences[NotificationCategory.SOCIAL] = CategoryPreference(is_enabled=False)
    evaluator = PreferenceEvaluator(p)
    assert evaluator.is_allowed(NotificationType.FRIEND_REQUEST) is False
    assert evaluator.is_allowed(NotificationType.MESSAGE_RECEIVED) is False
    assert evaluator.is_allowed(NotificationType.SIF_RECEIVED) is True


def test_type_override_is_checked_last():
    p = prefs()
    p.type_preferences[NotificationType.SIF_REMINDER] = TypePreference(is_enabled=False, custom_sound="chime.caf")
    evaluator = PreferenceEvaluator(p)
    assert evaluator.is_allowed(NotificationType.SIF_REMINDER) is False
    assert evaluator.is_allowed(NotificationType.SIF_RECEIVED) is True
    assert evaluator.custom_sound(NotificationType.SIF_REMINDER) == "chime.caf"


def test_sound_and_badge_cascade():
    p = prefs()
    p.category_preferences[NotificationCategory.SYSTEM] = CategoryPreference(sound_enabled=False)
    p.type_preferences[NotificationType.ACHIEVEMENT] = TypePreference(badge_enabled=False)
    evaluator = PreferenceEvaluator(p)
    assert evaluator.should_play_sound(NotificationType.SECURITY_ALERT) is False
    assert evaluator.should_show_badge(NotificationType.SECURITY_ALERT) is True
    assert evaluator.should_show_badge(NotificationType.ACHIEVEMENT) is False
    assert evaluator.should_play_sound(NotificationType.ACHIEVEMENT) is True

    muted = PreferenceEvaluator(prefs(sound_enabled=False, badge_enabled=False))
    assert muted.should_play_sound(NotificationType.SIF_RECEIVED) is False
    assert muted.should_show_badge(NotificationType.SIF_RECEIVED) is False


def test_missing_entries_fall_through_to_enabled():
    p = prefs()
    p.category_preferences.clear()
    p.type_preferences.clear()
    assert PreferenceEvaluator(p).is_allowed(NotificationType.TEMPLATE_SHARED) is True


def test_quiet_hours_disabled_is_never_active():
    evaluator = PreferenceEvaluator(prefs(quiet_hours_enabled=False))
    assert evaluator.is_quiet_hours_active(time(23, 0)) is False
    assert evaluator.is_quiet_hours_active(time(3, 0)) is False


@pytest.mark.parametrize("now,expected", [
    (time(22, 0), True),
    (time(23, 30), True),
    (time(0, 0), True),
    (time(7, 59), True),
    (time(8, 0), True),
    (time(8, 1), False),
    (time(12, 0), False),
    (time(21, 59), False),
])
def test_quiet_hours_window_spanning_midnight(now, expected):
    evaluator = PreferenceEvaluator(prefs(quiet_hours_enabled=True))
    assert evaluator.is_quiet_hours_active(now) is expected


@pytest.mark.parametrize("now,expected", [
    (time(13, 0), True),
    (time(13, 45), True),
    (time(14, 30), True),
    (time(12, 59), False),
    (time(14, 31), False),
])
def test_quiet_hours_window_within_a_day(now, expected):
    evaluator = PreferenceEvaluator(prefs(
        quiet_hours_enabled=True,
        quiet_hours_start=time(13, 0),
        quiet_hours_end=time(14, 30),
    ))
    assert evaluator.is_quiet_hours_active(now) is expected


def test_quiet_hours_ignore_the_date():
    evaluator = PreferenceEvaluator(prefs(quiet_hours_enabled=True))
    assert evaluator.is_quiet_hours_active(datetime(2026, 3, 1, 23, 15, tzinfo=timezone.utc)) is True
    assert evaluator.is_quiet_hours_active(datetime(2031, 7, 9, 23, 15)) is True


def test_evaluate_combines_decisions():
    evaluator = PreferenceEvaluator(prefs(quiet_hours_enabled=True))
    night = evaluator.evaluate(NotificationType.SIF_RECEIVED, time(23, 0))
    assert night.allowed and night.quiet_hours
    assert night.should_alert is False

    noon = evaluator.evaluate(NotificationType.SIF_RECEIVED, time(12, 0))
    assert noon.should_alert is True
    assert noon.play_sound and noon.show_badge

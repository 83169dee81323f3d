import time
from collections import deque
from typing import Callable, Deque, Dict

from ...application.ports.alert_throttle import AlertThrottle
from ...core.constants import ALERT_WINDOW_SECONDS


class InMemoryAlertThrottle(AlertThrottle):
    """Sliding one-hour window of alert timestamps per user."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._alerts: Dict[str, Deque[float]] = {}

    def try_acquire(self, user_id: str, limit_per_hour: int) -> bool:
        if limit_per_hour <= 0:
            return False
        now = self._clock()
        window = self._alerts.setdefault(user_id, deque())
        while window and window[0] <= now - ALERT_WINDOW_SECONDS:
            window.popleft()
        if len(window) >= limit_per_hour:
            return False
        window.append(now)
        return True

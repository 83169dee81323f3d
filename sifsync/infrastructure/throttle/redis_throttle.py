import time
import uuid
from typing import Callable, Optional

import redis

from ...application.ports.alert_throttle import AlertThrottle
from ...core.constants import ALERT_WINDOW_SECONDS


class RedisAlertThrottle(AlertThrottle):
    """Sliding-window alert cap shared by every process of a user, kept in a sorted set."""

    def __init__(self, url: str, prefix: str = "sif:alerts:", client: Optional["redis.Redis"] = None,
                 clock: Callable[[], float] = time.time) -> None:
        self.client = client if client is not None else redis.Redis.from_url(url)
        self.prefix = prefix
        self._clock = clock

    def try_acquire(self, user_id: str, limit_per_hour: int) -> bool:
        if limit_per_hour <= 0:
            return False
        key = f"{self.prefix}{user_id}"
        now = self._clock()
        member = f"{now}:{uuid.uuid4().hex}"
        # Claim a slot and count in one MULTI so concurrent callers see each other's claims.
        pipe = self.client.pipeline(transaction=True)
        pipe.zremrangebyscore(key, 0, now - ALERT_WINDOW_SECONDS)
        pipe.zadd(key, {member: now})
        pipe.zcard(key)
        pipe.expire(key, ALERT_WINDOW_SECONDS)
        _, _, count, _ = pipe.execute()
        if int(count) > limit_per_hour:
            self.client.zrem(key, member)
            return False
        return True

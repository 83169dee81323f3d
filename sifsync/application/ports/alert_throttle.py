from typing import Protocol


class AlertThrottle(Protocol):
    def try_acquire(self, user_id: str, limit_per_hour: int) -> bool:
        ...

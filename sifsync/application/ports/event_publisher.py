from typing import Any, Protocol


class EventPublisher(Protocol):
    def publish(self, event_type: str, payload: Any) -> None:
        ...

"""Deliver presentation signals to in-process subscribers."""

import copy
import logging
from collections import defaultdict
from typing import Any, Callable, DefaultDict, List

from ...application.ports.event_publisher import EventPublisher

logger = logging.getLogger(__name__)

Handler = Callable[[Any], None]


class InProcessEventPublisher(EventPublisher):
    def __init__(self) -> None:
        self._handlers: DefaultDict[str, List[Handler]] = defaultdict(list)

    def subscribe(self, event_type: str, handler: Handler) -> Callable[[], None]:
        """Register ``handler`` for ``event_type``; returns an unsubscribe callable."""
        self._handlers[event_type].append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers[event_type]:
                self._handlers[event_type].remove(handler)

        return unsubscribe

    def publish(self, event_type: str, payload: Any) -> None:
        for handler in list(self._handlers.get(event_type, ())):
            try:
                handler(copy.deepcopy(payload))
            except Exception:
                logger.exception(f"Handler for {event_type} failed")

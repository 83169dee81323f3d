import logging
from typing import Callable, List, Optional

from ...application.ports.identity import IdentityProvider

logger = logging.getLogger(__name__)

Listener = Callable[[Optional[str]], None]


class SessionIdentity(IdentityProvider):
    """Holds the signed-in user id for one process and notifies listeners on change."""

    def __init__(self, user_id: Optional[str] = None) -> None:
        self._user_id = user_id
        self._listeners: List[Listener] = []

    def current_user_id(self) -> Optional[str]:
        return self._user_id

    def set_user(self, user_id: Optional[str]) -> None:
        if user_id == self._user_id:
            return
        self._user_id = user_id
        for listener in list(self._listeners):
            listener(user_id)

    def clear(self) -> None:
        self.set_user(None)

    def add_listener(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

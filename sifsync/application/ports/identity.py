from typing import Optional, Protocol


class IdentityProvider(Protocol):
    def current_user_id(self) -> Optional[str]:
        ...

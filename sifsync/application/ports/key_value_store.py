from typing import List, Optional, Protocol


class KeyValueStore(Protocol):
    """Device-local blob storage (offline settings, token cache, badge mirror)."""

    def get(self, key: str) -> Optional[bytes]:
        ...

    def set(self, key: str, value: bytes) -> None:
        ...

    def delete(self, key: str) -> None:
        ...

    def keys(self, prefix: str = "") -> List[str]:
        ...

from typing import Dict, List, Optional

from ...application.ports.key_value_store import KeyValueStore


class InMemoryKeyValueStore(KeyValueStore):
    def __init__(self) -> None:
        self._store: Dict[str, bytes] = {}

    def get(self, key: str) -> Optional[bytes]:
        return self._store.get(key)

    def set(self, key: str, value: bytes) -> None:
        self._store[key] = bytes(value)

    def delete(self, key: str) -> None:
        self._store.pop(key, None)

    def keys(self, prefix: str = "") -> List[str]:
        return sorted(k for k in self._store if k.startswith(prefix))

import logging
from typing import List, Optional

import redis

from ...application.ports.key_value_store import KeyValueStore
from ...exceptions import KeyValueStoreError

logger = logging.getLogger(__name__)


class RedisKeyValueStore(KeyValueStore):
    """Key-value store backed by Redis; every key is namespaced with ``prefix``."""

    def __init__(self, url: str, prefix: str = "sif:", client: Optional["redis.Redis"] = None) -> None:
        self.client = client if client is not None else redis.Redis.from_url(url)
        self.prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def get(self, key: str) -> Optional[bytes]:
        try:
            return self.client.get(self._key(key))
        except redis.RedisError as e:
            logger.error(f"Redis get failed for {key}: {e}")
            raise KeyValueStoreError(str(e)) from e

    def set(self, key: str, value: bytes) -> None:
        try:
            self.client.set(self._key(key), value)
        except redis.RedisError as e:
            logger.error(f"Redis set failed for {key}: {e}")
            raise KeyValueStoreError(str(e)) from e

    def delete(self, key: str) -> None:
        try:
            self.client.delete(self._key(key))
        except redis.RedisError as e:
            logger.error(f"Redis delete failed for {key}: {e}")
            raise KeyValueStoreError(str(e)) from e

    def keys(self, prefix: str = "") -> List[str]:
        try:
            raw = self.client.scan_iter(match=f"{self._key(prefix)}*")
            names = [k.decode() if isinstance(k, bytes) else k for k in raw]
        except redis.RedisError as e:
            logger.error(f"Redis scan failed for {prefix}: {e}")
            raise KeyValueStoreError(str(e)) from e
        return sorted(name[len(self.prefix):] for name in names)

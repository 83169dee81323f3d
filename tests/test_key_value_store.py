import fnmatch

import pytest

from sifsync.exceptions import KeyValueStoreError
from sifsync.infrastructure.kv.memory_kv import InMemoryKeyValueStore


def test_memory_kv_roundtrip_and_prefix_listing():
    kv = InMemoryKeyValueStore()
    kv.set("settings_backup_u1_2", b"b")
    kv.set("settings_backup_u1_1", b"a")
    kv.set("offline_settings", b"x")
    assert kv.get("offline_settings") == b"x"
    assert kv.keys("settings_backup_u1_") == ["settings_backup_u1_1", "settings_backup_u1_2"]
    kv.delete("offline_settings")
    kv.delete("offline_settings")
    assert kv.get("offline_settings") is None


class FakeRedis:
    def __init__(self):
        self.store = {}

    def get(self, key):
        return self.store.get(key)

    def set(self, key, value):
        self.store[key] = value

    def delete(self, key):
        self.store.pop(key, None)

    def scan_iter(self, match):
        return [k.encode() for k in self.store if fnmatch.fnmatch(k, match)]


def test_redis_kv_namespaces_keys():
    pytest.importorskip("redis")
    from sifsync.infrastructure.kv.redis_kv import RedisKeyValueStore

    client = FakeRedis()
    kv = RedisKeyValueStore(url="redis://fake", prefix="sif:", client=client)
    kv.set("notification_badge_count", b"3")
    kv.set("settings_backup_u1_1", b"a")
    assert client.store["sif:notification_badge_count"] == b"3"
    assert kv.get("notification_badge_count") == b"3"
    assert kv.keys("settings_backup_") == ["settings_backup_u1_1"]
    kv.delete("notification_badge_count")
    assert kv.get("notification_badge_count") is None


def test_redis_kv_wraps_client_errors():
    redis = pytest.importorskip("redis")
    from sifsync.infrastructure.kv.redis_kv import RedisKeyValueStore

    class BrokenRedis(FakeRedis):
        def get(self, key):
            raise redis.ConnectionError("down")

    kv = RedisKeyValueStore(url="redis://fake", client=BrokenRedis())
    with pytest.raises(KeyValueStoreError):
        kv.get("anything")

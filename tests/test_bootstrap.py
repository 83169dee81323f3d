import pytest

pytest.importorskip("firebase_admin")
pytest.importorskip("redis")

from sifsync import bootstrap
from sifsync.core.config import Settings
from sifsync.infrastructure.auth.session_identity import SessionIdentity
from sifsync.infrastructure.kv.memory_kv import InMemoryKeyValueStore
from sifsync.infrastructure.kv.redis_kv import RedisKeyValueStore
from sifsync.infrastructure.memory.memory_store import InMemoryDocumentStore
from sifsync.infrastructure.throttle.memory_throttle import InMemoryAlertThrottle
from sifsync.infrastructure.throttle.redis_throttle import RedisAlertThrottle


def unconfigured(**overrides) -> Settings:
    values = dict(FIREBASE_PROJECT_ID="", FIREBASE_PRIVATE_KEY="", FIREBASE_CLIENT_EMAIL="", REDIS_URL=None)
    values.update(overrides)
    return Settings(**values)


def test_local_adapters_without_credentials():
    config = unconfigured()
    assert isinstance(bootstrap.build_key_value_store(config), InMemoryKeyValueStore)
    assert isinstance(bootstrap.build_alert_throttle(config), InMemoryAlertThrottle)
    store, identity = bootstrap.build_remote_store(config)
    assert isinstance(store, InMemoryDocumentStore)
    assert isinstance(identity, SessionIdentity)


def test_redis_adapters_when_url_is_set():
    config = unconfigured(REDIS_URL="redis://localhost:6379/0", KV_NAMESPACE="test:")
    kv = bootstrap.build_key_value_store(config)
    assert isinstance(kv, RedisKeyValueStore)
    assert kv.prefix == "test:"
    throttle = bootstrap.build_alert_throttle(config)
    assert isinstance(throttle, RedisAlertThrottle)
    assert throttle.prefix == "test:alerts:"


def test_create_session_wires_a_local_session():
    session = bootstrap.create_session(config=unconfigured(PUSH_PLATFORM="android"))
    assert isinstance(session.store, InMemoryDocumentStore)
    assert session.registrar is None
    assert session.notifications.max_retained == session.config.NOTIFICATIONS_MAX_RETAINED

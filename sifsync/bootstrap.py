import logging
from typing import Callable, Optional, Tuple

from dotenv import load_dotenv

from .application.ports.alert_throttle import AlertThrottle
from .application.ports.key_value_store import KeyValueStore
from .application.ports.push_transport import PushTransport
from .application.ports.remote_store import RemoteDocumentStore
from .core.config import Settings, get_settings
from .infrastructure.audit.std_logger import StdAuditLogger
from .infrastructure.auth.firebase_identity import FirebaseIdentity
from .infrastructure.auth.session_identity import SessionIdentity
from .infrastructure.firebase.app import init_firebase_app
from .infrastructure.firebase.firestore_store import FirestoreDocumentStore
from .infrastructure.kv.memory_kv import InMemoryKeyValueStore
from .infrastructure.kv.redis_kv import RedisKeyValueStore
from .infrastructure.memory.memory_store import InMemoryDocumentStore
from .infrastructure.throttle.memory_throttle import InMemoryAlertThrottle
from .infrastructure.throttle.redis_throttle import RedisAlertThrottle
from .session import SyncSession

# Load environment variables as early as possible
load_dotenv()

logger = logging.getLogger(__name__)


def configure_logging(config: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
        format=config.LOG_FORMAT,
    )


def build_key_value_store(config: Settings) -> KeyValueStore:
    if config.REDIS_URL:
        return RedisKeyValueStore(config.REDIS_URL, prefix=config.KV_NAMESPACE)
    return InMemoryKeyValueStore()


def build_alert_throttle(config: Settings) -> AlertThrottle:
    if config.REDIS_URL:
        return RedisAlertThrottle(config.REDIS_URL, prefix=f"{config.KV_NAMESPACE}alerts:")
    return InMemoryAlertThrottle()


def build_remote_store(config: Settings) -> Tuple[RemoteDocumentStore, SessionIdentity]:
    """Firestore when credentials are configured, otherwise a process-local store."""
    app = init_firebase_app(config)
    if app is None:
        logger.warning("Falling back to the in-memory document store")
        return InMemoryDocumentStore(), SessionIdentity()
    return FirestoreDocumentStore(app), FirebaseIdentity(app)


def create_session(
    transport: Optional[PushTransport] = None,
    config: Optional[Settings] = None,
    is_app_active: Callable[[], bool] = lambda: True,
) -> SyncSession:
    config = config or get_settings()
    configure_logging(config)
    store, identity = build_remote_store(config)
    return SyncSession(
        store=store,
        kv=build_key_value_store(config),
        identity=identity,
        throttle=build_alert_throttle(config),
        audit=StdAuditLogger(),
        transport=transport,
        config=config,
        is_app_active=is_app_active,
    )

# sifsync/core/config.py
import os
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict
from typing import Optional
from functools import lru_cache

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # Application Settings
    APP_NAME: str = "SIF Notification Sync"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Firebase Settings
    FIREBASE_PROJECT_ID: str = os.environ.get("FIREBASE_PROJECT_ID", "")
    FIREBASE_PRIVATE_KEY: str = os.environ.get("FIREBASE_PRIVATE_KEY", "").replace('\\n', '\n')
    FIREBASE_CLIENT_EMAIL: str = os.environ.get("FIREBASE_CLIENT_EMAIL", "")
    FIREBASE_DATABASE_URL: str = os.environ.get("FIREBASE_DATABASE_URL", "")

    # Local persistence (offline snapshot, device token cache, badge mirror)
    REDIS_URL: Optional[str] = os.environ.get("REDIS_URL", None)
    KV_NAMESPACE: str = "sif:"

    # Push registration
    PUSH_PLATFORM: str = "ios"

    # Notification center
    NOTIFICATIONS_MAX_RETAINED: int = 50

    # Feature flags
    OFFLINE_MODE_ENABLED: bool = True
    SETTINGS_SYNC_ENABLED: bool = True

    # Logging Settings
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    @property
    def firebase_configured(self) -> bool:
        return bool(self.FIREBASE_PROJECT_ID and self.FIREBASE_PRIVATE_KEY and self.FIREBASE_CLIENT_EMAIL)

@lru_cache()
def get_settings() -> Settings:
    return Settings()

settings: Settings = get_settings()

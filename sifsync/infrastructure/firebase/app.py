import logging
from typing import Optional

import firebase_admin
from firebase_admin import credentials

from ...core.config import Settings

logger = logging.getLogger(__name__)


def init_firebase_app(config: Settings) -> Optional[firebase_admin.App]:
    """Return the default Firebase app, initializing it from service-account settings once."""
    if firebase_admin._apps:  # type: ignore[attr-defined]
        return firebase_admin.get_app()
    if not config.firebase_configured:
        logger.warning("Firebase credentials are not configured; skipping initialization")
        return None
    cred = credentials.Certificate({
        "type": "service_account",
        "project_id": config.FIREBASE_PROJECT_ID,
        "private_key": config.FIREBASE_PRIVATE_KEY,
        "client_email": config.FIREBASE_CLIENT_EMAIL,
        "token_uri": "https://oauth2.googleapis.com/token",
    })
    app = firebase_admin.initialize_app(cred, {
        "projectId": config.FIREBASE_PROJECT_ID,
        "databaseURL": config.FIREBASE_DATABASE_URL or None,
    })
    logger.info("Firebase app initialized")
    return app

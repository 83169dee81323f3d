import logging
from typing import Any, Dict, Optional

import firebase_admin
from firebase_admin import auth as fb_auth

from ...exceptions import UserNotAuthenticatedError
from .session_identity import SessionIdentity

logger = logging.getLogger(__name__)


def extract_uid(claims: Dict[str, Any]) -> Optional[str]:
    return claims.get("uid") or claims.get("sub")


class FirebaseIdentity(SessionIdentity):
    """Session identity established by verifying a Firebase ID token."""

    def __init__(self, app: Optional[firebase_admin.App] = None) -> None:
        super().__init__()
        self._app = app

    def sign_in_with_id_token(self, id_token: str) -> str:
        try:
            claims = fb_auth.verify_id_token(id_token, app=self._app)
        except (ValueError, fb_auth.InvalidIdTokenError, fb_auth.ExpiredIdTokenError, fb_auth.RevokedIdTokenError) as e:
            logger.warning(f"Firebase token verification failed: {e}")
            raise UserNotAuthenticatedError() from e
        uid = extract_uid(claims)
        if not uid:
            raise UserNotAuthenticatedError()
        self.set_user(uid)
        return uid

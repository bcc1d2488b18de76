# fled_notify/core/security.py
import asyncio
from typing import Any, Dict, Protocol

from firebase_admin import auth


class IdentityError(Exception):
    pass


class IdentityVerifier(Protocol):
    async def verify(self, token: str) -> Dict[str, Any]:
        """Return the token claims or raise IdentityError."""


class FirebaseIdentityVerifier:
    def __init__(self, app=None, check_revoked: bool = False):
        self._app = app
        self._check_revoked = check_revoked

    async def verify(self, token: str) -> Dict[str, Any]:
        try:
            return await asyncio.to_thread(auth.verify_id_token, token, self._app, self._check_revoked)
        except (ValueError, auth.InvalidIdTokenError, auth.ExpiredIdTokenError,
                auth.RevokedIdTokenError, auth.CertificateFetchError, auth.UserDisabledError) as e:
            raise IdentityError(str(e)) from e


def parse_bearer(auth_header: str | None) -> str | None:
    if not auth_header:
        return None
    if auth_header.lower().startswith("bearer "):
        auth_header = auth_header.split(" ", 1)[1]
    return auth_header.strip() or None

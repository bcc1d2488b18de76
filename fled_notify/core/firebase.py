# fled_notify/core/firebase.py
import os

import firebase_admin
from firebase_admin import credentials

from fled_notify.core.config import settings
from fled_notify.core.logging import log


class CredentialsMissing(RuntimeError):
    pass


def get_firebase_app(credentials_path: str | None = None, *, require_file: bool = False) -> firebase_admin.App:
    """
    Return the default firebase_admin app, initializing it on first use.

    Uses the service account file when present, otherwise falls back to
    application-default credentials unless ``require_file`` is set.
    """
    try:
        return firebase_admin.get_app()
    except ValueError:
        pass

    path = credentials_path or settings.FIREBASE_CREDENTIALS_PATH
    options = {"projectId": settings.FIREBASE_PROJECT_ID} if settings.FIREBASE_PROJECT_ID else None

    if path and os.path.exists(path):
        app = firebase_admin.initialize_app(credentials.Certificate(path), options)
        log.info("firebase_initialized", source="file", path=path)
        return app

    if require_file:
        raise CredentialsMissing(f"Service account JSON not found at {path}")

    app = firebase_admin.initialize_app(options=options)
    log.info("firebase_initialized", source="application_default")
    return app

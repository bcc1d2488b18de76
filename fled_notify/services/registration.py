# fled_notify/services/registration.py
from datetime import datetime, timezone

from fled_notify.core.config import Settings, settings as default_settings
from fled_notify.core.logging import log
from fled_notify.store.base import SERVER_TIMESTAMP, ArrayUnion, DocumentStore, doc_path


async def register_token(
    store: DocumentStore,
    uid: str,
    token: str,
    device: str | None = None,
    settings: Settings | None = None,
) -> dict:
    """Add a device token to a principal's token collection. Tokens are only ever added here."""
    settings = settings or default_settings
    token = token.strip()
    if not token:
        raise ValueError("token is empty")

    record = {
        "token": token,
        "device": device or "Unknown",
        "addedAt": datetime.now(tz=timezone.utc).isoformat(),
    }
    await store.set(
        doc_path(settings.PRINCIPALS_COLLECTION, uid),
        {"fcmTokens": ArrayUnion([record]), "lastTokenUpdate": SERVER_TIMESTAMP},
        merge=True,
    )
    log.info("token_registered", uid=uid, device=record["device"])
    return record

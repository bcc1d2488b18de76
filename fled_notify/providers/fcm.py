# fled_notify/providers/fcm.py
import asyncio
from typing import Sequence

from firebase_admin import exceptions, messaging

from fled_notify.core.logging import log
from fled_notify.providers.base import (
    INVALID_TOKEN,
    UNREGISTERED,
    BatchResponse,
    ProviderError,
    SendResult,
    TransientProviderError,
)
from fled_notify.schemas.notification import NotificationPayload

_TRANSIENT = (
    exceptions.UnavailableError,
    exceptions.InternalError,
    exceptions.DeadlineExceededError,
)


def error_code_for(exc: Exception | None) -> str | None:
    if exc is None:
        return None
    if isinstance(exc, messaging.UnregisteredError):
        return UNREGISTERED
    # INVALID_ARGUMENT also covers message-level faults (oversized payload, bad data key)
    if isinstance(exc, exceptions.InvalidArgumentError) and "registration token" in str(exc).lower():
        return INVALID_TOKEN
    code = getattr(exc, "code", None)
    return str(code).lower() if code else "unknown"


class FCMProvider:
    """PushProvider over firebase_admin.messaging multicast."""

    max_batch_size = 500

    def __init__(self, app=None):
        self._app = app

    def _build_message(self, payload: NotificationPayload, tokens: Sequence[str]) -> messaging.MulticastMessage:
        return messaging.MulticastMessage(
            notification=messaging.Notification(title=payload.title, body=payload.body),
            data=payload.data_as_strings(),
            tokens=list(tokens),
        )

    async def send_multicast(self, payload: NotificationPayload, tokens: Sequence[str]) -> BatchResponse:
        if len(tokens) > self.max_batch_size:
            raise ValueError(f"FCM accepts at most {self.max_batch_size} tokens per call, got {len(tokens)}")

        message = self._build_message(payload, tokens)
        try:
            response = await asyncio.to_thread(messaging.send_each_for_multicast, message, False, self._app)
        except _TRANSIENT as e:
            log.warning("fcm_transient_error", code=getattr(e, "code", None), error=str(e))
            raise TransientProviderError(str(e)) from e
        except exceptions.FirebaseError as e:
            raise ProviderError(str(e)) from e

        return BatchResponse(results=[
            SendResult(
                token=token,
                success=r.success,
                error_code=error_code_for(r.exception),
                message_id=r.message_id,
            )
            for token, r in zip(tokens, response.responses)
        ])

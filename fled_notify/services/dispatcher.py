# fled_notify/services/dispatcher.py
import asyncio
from typing import Iterable, List, Optional, Sequence

from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_fixed

from fled_notify.core.config import Settings, settings as default_settings
from fled_notify.core.logging import log
from fled_notify.providers.base import BatchResponse, PushProvider, TransientProviderError
from fled_notify.schemas.notification import DispatchResult, NotificationPayload
from fled_notify.services.sanitizer import TokenSanitizer


def chunked(tokens: Sequence[str], size: int) -> List[List[str]]:
    return [list(tokens[i:i + size]) for i in range(0, len(tokens), size)]


class NotificationDispatcher:
    """
    Sends one payload to a token set in bounded batches.

    Batches go out one after another. A batch whose provider call raises is
    counted as failed in full and the loop moves on. Tokens the provider
    reports as unregistered or invalid are collected across all batches
    and purged once, before dispatch returns.
    """

    def __init__(
        self,
        provider: PushProvider,
        sanitizer: Optional[TokenSanitizer] = None,
        *,
        settings: Settings | None = None,
        batch_size: Optional[int] = None,
        retry_attempts: Optional[int] = None,
        retry_wait: Optional[float] = None,
        send_timeout: Optional[float] = None,
    ):
        settings = settings or default_settings
        self.provider = provider
        self.sanitizer = sanitizer
        self.batch_size = settings.PUSH_BATCH_SIZE if batch_size is None else batch_size
        self.retry_attempts = max(1, settings.PUSH_RETRY_ATTEMPTS if retry_attempts is None else retry_attempts)
        self.retry_wait = settings.PUSH_RETRY_WAIT_SECONDS if retry_wait is None else retry_wait
        self.send_timeout = settings.PUSH_SEND_TIMEOUT_SECONDS if send_timeout is None else send_timeout

        ceiling = min(settings.PUSH_BATCH_CEILING, getattr(provider, "max_batch_size", settings.PUSH_BATCH_CEILING))
        if not 0 < self.batch_size < ceiling:
            raise ValueError(f"batch size must be between 1 and {ceiling - 1}, got {self.batch_size}")

    async def _call_provider(self, payload: NotificationPayload, batch: List[str]) -> BatchResponse:
        call = self.provider.send_multicast(payload, batch)
        if self.send_timeout:
            return await asyncio.wait_for(call, timeout=self.send_timeout)
        return await call

    async def _send_batch(self, payload: NotificationPayload, batch: List[str]) -> BatchResponse:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.retry_attempts),
            wait=wait_fixed(self.retry_wait),
            retry=retry_if_exception_type(TransientProviderError),
            reraise=True,
        ):
            with attempt:
                return await self._call_provider(payload, batch)

    async def dispatch(self, payload: NotificationPayload, tokens: Iterable[str]) -> DispatchResult:
        tokens = [t for t in dict.fromkeys(tokens or ()) if t]
        if not tokens:
            return DispatchResult()

        sent = 0
        failed = 0
        invalid: set[str] = set()
        batches = chunked(tokens, self.batch_size)

        for index, batch in enumerate(batches, start=1):
            try:
                response = await self._send_batch(payload, batch)
            except Exception as e:
                failed += len(batch)
                log.error("batch_send_failed", batch=index, size=len(batch), error=str(e), error_type=type(e).__name__)
                continue

            sent += response.success_count
            failed += response.failure_count
            for result in response.results:
                if result.is_invalid_token:
                    invalid.add(result.token)
            log.info(
                "batch_sent",
                batch=index,
                size=len(batch),
                success=response.success_count,
                failure=response.failure_count,
            )

        if invalid and self.sanitizer is not None:
            try:
                await self.sanitizer.purge(invalid)
            except Exception as e:
                log.error("token_cleanup_crashed", tokens=len(invalid), error=str(e))

        log.info("dispatch_finished", title=payload.title, sent=sent, failed=failed, invalid=len(invalid), batches=len(batches))
        return DispatchResult(sent=sent, failed=failed, invalid_tokens=frozenset(invalid), batches=len(batches))

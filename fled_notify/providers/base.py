# fled_notify/providers/base.py
from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Sequence, runtime_checkable

from fled_notify.schemas.notification import NotificationPayload

# Per-token error codes that mean the token will never work again
UNREGISTERED = "registration-token-not-registered"
INVALID_TOKEN = "invalid-registration-token"
INVALID_TOKEN_CODES = frozenset({UNREGISTERED, INVALID_TOKEN})


class ProviderError(Exception):
    """The whole multicast call failed; no per-token results exist."""


class TransientProviderError(ProviderError):
    """Whole-call failure that is worth retrying (unavailable, internal, deadline)."""


@dataclass
class SendResult:
    token: str
    success: bool
    error_code: Optional[str] = None
    message_id: Optional[str] = None

    @property
    def is_invalid_token(self) -> bool:
        return not self.success and self.error_code in INVALID_TOKEN_CODES


@dataclass
class BatchResponse:
    results: List[SendResult] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failure_count(self) -> int:
        return sum(1 for r in self.results if not r.success)


@runtime_checkable
class PushProvider(Protocol):
    max_batch_size: int

    async def send_multicast(self, payload: NotificationPayload, tokens: Sequence[str]) -> BatchResponse:
        """Deliver one payload to up to ``max_batch_size`` tokens; results are in token order."""

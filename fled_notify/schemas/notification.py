# fled_notify/schemas/notification.py
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet


@dataclass(frozen=True)
class NotificationPayload:
    title: str
    body: str
    data: Dict[str, Any] = field(default_factory=dict)

    def data_as_strings(self) -> Dict[str, str]:
        # FCM data values must be strings
        return {k: "" if v is None else str(v) for k, v in self.data.items()}


@dataclass(frozen=True)
class DispatchResult:
    sent: int = 0
    failed: int = 0
    invalid_tokens: FrozenSet[str] = frozenset()
    batches: int = 0

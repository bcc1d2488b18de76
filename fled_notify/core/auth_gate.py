# fled_notify/core/auth_gate.py
"""
Per-request authentication state machine.

    UNAUTHENTICATED --token--> VERIFYING --ok--> AUTHORIZED
          |                        |
          +--no token--> DENIED <--+--rejected / principal check fails
    AUTHORIZED --revoked--> UNAUTHENTICATED

Every transition returns exactly one effect for the caller to carry out.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class AuthState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    VERIFYING = "verifying"
    AUTHORIZED = "authorized"
    DENIED = "denied"


class GateEffect(str, Enum):
    NONE = "none"
    REVEAL = "reveal"
    REJECT = "reject"


class DenyReason(str, Enum):
    MISSING_TOKEN = "No authorization token provided"
    INVALID_TOKEN = "Unauthorized - invalid token"
    UNKNOWN_PRINCIPAL = "User account not found"
    INSUFFICIENT_ROLE = "Insufficient permissions"
    DISABLED = "Account disabled"
    SIGNED_OUT = "Signed out elsewhere"

    @property
    def is_authentication_failure(self) -> bool:
        return self in (DenyReason.MISSING_TOKEN, DenyReason.INVALID_TOKEN, DenyReason.SIGNED_OUT)


class InvalidTransition(ValueError):
    pass


@dataclass(frozen=True)
class Transition:
    state: AuthState
    effect: GateEffect
    reason: Optional[DenyReason] = None


class AuthGate:
    def __init__(self, required_role: Optional[str] = None):
        self.required_role = required_role
        self.state = AuthState.UNAUTHENTICATED
        self.reason: Optional[DenyReason] = None

    def _expect(self, *states: AuthState) -> None:
        if self.state not in states:
            raise InvalidTransition(f"cannot leave {self.state.value} this way")

    def _move(self, state: AuthState, effect: GateEffect, reason: Optional[DenyReason] = None) -> Transition:
        self.state = state
        self.reason = reason
        return Transition(state, effect, reason)

    def present_token(self, token: Optional[str]) -> Transition:
        self._expect(AuthState.UNAUTHENTICATED)
        if not token:
            return self._move(AuthState.DENIED, GateEffect.REJECT, DenyReason.MISSING_TOKEN)
        return self._move(AuthState.VERIFYING, GateEffect.NONE)

    def token_rejected(self) -> Transition:
        self._expect(AuthState.VERIFYING)
        return self._move(AuthState.DENIED, GateEffect.REJECT, DenyReason.INVALID_TOKEN)

    def token_verified(self, principal: Optional[Dict[str, Any]] = None) -> Transition:
        """
        Accept verified claims. When a role is required, ``principal`` is the
        principal's stored document (None if it does not exist).
        """
        self._expect(AuthState.VERIFYING)
        if self.required_role:
            if principal is None:
                return self._move(AuthState.DENIED, GateEffect.REJECT, DenyReason.UNKNOWN_PRINCIPAL)
            if principal.get("role") != self.required_role:
                return self._move(AuthState.DENIED, GateEffect.REJECT, DenyReason.INSUFFICIENT_ROLE)
            if principal.get("disabled") is True:
                return self._move(AuthState.DENIED, GateEffect.REJECT, DenyReason.DISABLED)
        return self._move(AuthState.AUTHORIZED, GateEffect.REVEAL)

    def token_revoked(self) -> Transition:
        self._expect(AuthState.AUTHORIZED)
        return self._move(AuthState.UNAUTHENTICATED, GateEffect.REJECT, DenyReason.SIGNED_OUT)

    @property
    def is_authorized(self) -> bool:
        return self.state is AuthState.AUTHORIZED

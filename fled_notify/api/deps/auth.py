# fled_notify/api/deps/auth.py
from typing import Any, Dict, Optional

from fastapi import Depends, Header, HTTPException, status

from fled_notify.api.deps.services import Services, get_services
from fled_notify.core.auth_gate import AuthGate, GateEffect, Transition
from fled_notify.core.logging import log
from fled_notify.core.security import IdentityError, parse_bearer
from fled_notify.store.base import doc_path


class AuthContext:
    def __init__(self, uid: str, claims: Dict[str, Any], gate: AuthGate):
        self.uid = uid
        self.claims = claims
        self.gate = gate


def _reject(transition: Transition) -> HTTPException:
    code = status.HTTP_401_UNAUTHORIZED if transition.reason.is_authentication_failure else status.HTTP_403_FORBIDDEN
    return HTTPException(status_code=code, detail=transition.reason.value)


async def get_auth_ctx(
    authorization: Optional[str] = Header(None),
    services: Services = Depends(get_services),
) -> AuthContext:
    gate = AuthGate(required_role=services.settings.NOTIFY_REQUIRED_ROLE)

    transition = gate.present_token(parse_bearer(authorization))
    if transition.effect is GateEffect.REJECT:
        raise _reject(transition)

    try:
        claims = await services.verifier.verify(parse_bearer(authorization))
    except IdentityError as e:
        log.warning("token_verification_failed", error=str(e))
        raise _reject(gate.token_rejected())

    uid = claims.get("uid") or claims.get("sub")
    if not uid:
        raise _reject(gate.token_rejected())

    principal = None
    if gate.required_role:
        principal = await services.store.get(doc_path(services.settings.PRINCIPALS_COLLECTION, uid))

    transition = gate.token_verified(principal)
    if transition.effect is GateEffect.REJECT:
        log.warning("principal_denied", uid=uid, reason=transition.reason.name)
        raise _reject(transition)

    return AuthContext(uid=uid, claims=claims, gate=gate)

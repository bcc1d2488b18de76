import pytest

from fled_notify.core.auth_gate import AuthGate, AuthState, DenyReason, GateEffect, InvalidTransition
from fled_notify.core.security import parse_bearer


def test_verified_token_reveals():
    gate = AuthGate()

    assert gate.present_token("abc").state is AuthState.VERIFYING
    transition = gate.token_verified({"uid": "u1"})

    assert transition.effect is GateEffect.REVEAL
    assert gate.is_authorized


def test_missing_token_is_denied_without_verifying():
    gate = AuthGate()

    transition = gate.present_token(None)

    assert transition.state is AuthState.DENIED
    assert transition.effect is GateEffect.REJECT
    assert transition.reason is DenyReason.MISSING_TOKEN
    assert transition.reason.is_authentication_failure
    with pytest.raises(InvalidTransition):
        gate.token_verified()


def test_rejected_token_is_denied():
    gate = AuthGate()
    gate.present_token("abc")

    transition = gate.token_rejected()

    assert transition.reason is DenyReason.INVALID_TOKEN
    assert not gate.is_authorized


@pytest.mark.parametrize(
    "principal, reason",
    [
        (None, DenyReason.UNKNOWN_PRINCIPAL),
        ({"role": "parent"}, DenyReason.INSUFFICIENT_ROLE),
        ({"role": "teacher", "disabled": True}, DenyReason.DISABLED),
    ],
)
def test_principal_checks_when_role_required(principal, reason):
    gate = AuthGate(required_role="teacher")
    gate.present_token("abc")

    transition = gate.token_verified(principal)

    assert transition.effect is GateEffect.REJECT
    assert transition.reason is reason
    assert not reason.is_authentication_failure


def test_role_not_checked_by_default():
    gate = AuthGate()
    gate.present_token("abc")

    assert gate.token_verified(None).effect is GateEffect.REVEAL


def test_revocation_returns_to_unauthenticated():
    gate = AuthGate()
    gate.present_token("abc")
    gate.token_verified()

    transition = gate.token_revoked()

    assert transition.state is AuthState.UNAUTHENTICATED
    assert transition.effect is GateEffect.REJECT
    assert transition.reason is DenyReason.SIGNED_OUT
    gate.present_token("fresh")
    assert gate.state is AuthState.VERIFYING


def test_cannot_revoke_before_authorizing():
    with pytest.raises(InvalidTransition):
        AuthGate().token_revoked()


@pytest.mark.parametrize(
    "header, expected",
    [
        (None, None),
        ("", None),
        ("Bearer abc", "abc"),
        ("bearer  abc ", "abc"),
        ("Bearer ", None),
        ("raw-token", "raw-token"),
    ],
)
def test_parse_bearer(header, expected):
    assert parse_bearer(header) == expected

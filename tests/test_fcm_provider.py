from types import SimpleNamespace

import pytest
from firebase_admin import exceptions, messaging

from fled_notify.providers.base import INVALID_TOKEN, UNREGISTERED, ProviderError, TransientProviderError
from fled_notify.providers.fcm import FCMProvider, error_code_for
from fled_notify.schemas.notification import NotificationPayload
from fled_notify.services.dispatcher import NotificationDispatcher

PAYLOAD = NotificationPayload(title="New Task", body="Essay", data={"taskId": "t1", "count": 3})


def reply(success=True, exception=None, message_id=None):
    return SimpleNamespace(success=success, exception=exception, message_id=message_id)


def test_error_code_mapping():
    assert error_code_for(None) is None
    assert error_code_for(messaging.UnregisteredError("gone")) == UNREGISTERED
    assert error_code_for(
        exceptions.InvalidArgumentError("The registration token is not a valid FCM registration token")
    ) == INVALID_TOKEN
    assert error_code_for(messaging.QuotaExceededError("slow down")) == "resource_exhausted"


def test_message_level_invalid_argument_is_not_a_token_error():
    oversized = exceptions.InvalidArgumentError("Message exceeded maximum size of 4096 bytes")

    assert error_code_for(oversized) == "invalid_argument"
    assert error_code_for(exceptions.InvalidArgumentError("Invalid data key: from")) == "invalid_argument"


async def test_oversized_payload_keeps_every_token(monkeypatch, store, sanitizer, settings):
    store.docs["parents/p1"] = {"email": "a@home.test", "fcmToken": "good-1"}
    store.docs["users/u1/devices/d1"] = {"token": "good-2"}

    def fake_send(message, dry_run, app):
        error = exceptions.InvalidArgumentError("Message exceeded maximum size of 4096 bytes")
        return SimpleNamespace(responses=[reply(False, error), reply(False, error)])

    monkeypatch.setattr(messaging, "send_each_for_multicast", fake_send)
    dispatcher = NotificationDispatcher(FCMProvider(), sanitizer, settings=settings)

    result = await dispatcher.dispatch(PAYLOAD, ["good-1", "good-2"])

    assert result.failed == 2
    assert result.invalid_tokens == frozenset()
    assert store.docs["parents/p1"]["fcmToken"] == "good-1"
    assert "users/u1/devices/d1" in store.docs


async def test_results_follow_token_order(monkeypatch):
    seen = {}

    def fake_send(message, dry_run, app):
        seen["message"] = message
        return SimpleNamespace(responses=[
            reply(message_id="m1"),
            reply(False, messaging.UnregisteredError("gone")),
            reply(False, exceptions.UnavailableError("later")),
        ])

    monkeypatch.setattr(messaging, "send_each_for_multicast", fake_send)

    response = await FCMProvider().send_multicast(PAYLOAD, ["a", "b", "c"])

    assert [r.token for r in response.results] == ["a", "b", "c"]
    assert response.success_count == 1
    assert [r.token for r in response.results if r.is_invalid_token] == ["b"]
    assert response.results[2].error_code == "unavailable"
    assert seen["message"].data == {"taskId": "t1", "count": "3"}
    assert seen["message"].notification.title == "New Task"


@pytest.mark.parametrize(
    "error, expected",
    [
        (exceptions.UnavailableError("down"), TransientProviderError),
        (exceptions.DeadlineExceededError("slow"), TransientProviderError),
        (exceptions.PermissionDeniedError("no"), ProviderError),
    ],
)
async def test_whole_call_failures(monkeypatch, error, expected):
    def fake_send(message, dry_run, app):
        raise error

    monkeypatch.setattr(messaging, "send_each_for_multicast", fake_send)

    with pytest.raises(expected):
        await FCMProvider().send_multicast(PAYLOAD, ["a"])


async def test_rejects_oversized_batch():
    with pytest.raises(ValueError):
        await FCMProvider().send_multicast(PAYLOAD, [f"t{i}" for i in range(501)])

"""
Shared fixtures.

Usage:
    def test_example(store, provider, client):
        response = client.get("/health")
        assert response.status_code == 200
"""
import pytest
from fastapi.testclient import TestClient

from fled_notify.api.deps.services import Services
from fled_notify.core.config import Settings
from fled_notify.main import create_app
from fled_notify.services.dispatcher import NotificationDispatcher
from fled_notify.services.sanitizer import TokenSanitizer
from fled_notify.services.tokens import TokenResolver
from tests.fakes import InMemoryStore, ScriptedPushProvider, StubVerifier

TEACHER_TOKEN = "teacher-id-token"


@pytest.fixture
def settings():
    return Settings(PUSH_RETRY_WAIT_SECONDS=0, PUSH_RETRY_ATTEMPTS=2, NOTIFY_REQUIRED_ROLE=None)


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def provider():
    return ScriptedPushProvider()


@pytest.fixture
def resolver(store, settings):
    return TokenResolver(store, settings)


@pytest.fixture
def sanitizer(store, settings):
    return TokenSanitizer(store, settings)


@pytest.fixture
def dispatcher(provider, sanitizer, settings):
    return NotificationDispatcher(provider, sanitizer, settings=settings)


@pytest.fixture
def verifier():
    return StubVerifier({TEACHER_TOKEN: {"uid": "teacher-1", "email": "teacher@school.test"}})


@pytest.fixture
def services(store, provider, verifier, settings):
    return Services(store=store, provider=provider, verifier=verifier, settings=settings)


@pytest.fixture
def client(services):
    return TestClient(create_app(services))


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {TEACHER_TOKEN}"}


from fled_notify.api.deps.services import Services
from fled_notify.core.config import settings as default_settings
from fled_notify.services.events import NotificationEvents
from tests.fakes import InMemoryStore, ScriptedPushProvider, StubVerifier


def test_services_fall_back_to_module_settings():
    services = Services(store=InMemoryStore(), provider=ScriptedPushProvider(), verifier=StubVerifier())

    assert services.settings is default_settings


def test_events_share_the_injected_collaborators(services, store, provider, settings):
    events = services.events()

    assert isinstance(events, NotificationEvents)
    assert events.resolver.store is store
    assert events.dispatcher.provider is provider
    assert events.dispatcher.sanitizer.store is store
    assert events.settings is settings

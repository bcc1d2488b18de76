# fled_notify/api/deps/services.py
from dataclasses import dataclass, field

from fastapi import Request

from fled_notify.core.config import Settings, settings as default_settings
from fled_notify.core.security import IdentityVerifier
from fled_notify.providers.base import PushProvider
from fled_notify.services.dispatcher import NotificationDispatcher
from fled_notify.services.events import NotificationEvents
from fled_notify.services.sanitizer import TokenSanitizer
from fled_notify.services.tokens import TokenResolver
from fled_notify.store.base import DocumentStore


@dataclass
class Services:
    store: DocumentStore
    provider: PushProvider
    verifier: IdentityVerifier
    settings: Settings = field(default_factory=lambda: default_settings)

    def events(self) -> NotificationEvents:
        resolver = TokenResolver(self.store, self.settings)
        dispatcher = NotificationDispatcher(
            self.provider,
            TokenSanitizer(self.store, self.settings),
            settings=self.settings,
        )
        return NotificationEvents(resolver, dispatcher, self.settings)


def build_firebase_services(settings: Settings = default_settings) -> Services:
    from fled_notify.core.firebase import get_firebase_app
    from fled_notify.core.security import FirebaseIdentityVerifier
    from fled_notify.providers.fcm import FCMProvider
    from fled_notify.store.firestore import FirestoreStore

    app = get_firebase_app()
    return Services(
        store=FirestoreStore(app=app),
        provider=FCMProvider(app=app),
        verifier=FirebaseIdentityVerifier(app=app, check_revoked=settings.AUTH_CHECK_REVOKED),
        settings=settings,
    )


def get_services(request: Request) -> Services:
    services = getattr(request.app.state, "services", None)
    if services is None:
        services = build_firebase_services()
        request.app.state.services = services
    return services

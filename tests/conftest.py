"""Shared fixtures for the notification center test-suite."""

from __future__ import annotations

import os

os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["APP_TIMEZONE"] = "UTC"
os.environ["NOTIFICATION_DISPATCH_MODE"] = "client"

import pytest

from notification_center.application.use_cases.notifications import (
    AudienceResolver,
    DedupeGuard,
    NotificationDispatcher,
)
from notification_center.domain.entities import (
    ROLE_ADMIN,
    ROLE_ADMIN_ASSISTANT,
    DirectoryUser,
    Identity,
    TenantContext,
)
from notification_center.infrastructure import database
from notification_center.infrastructure.identity import SessionIdentityProvider
from notification_center.infrastructure.notifications import (
    DispatchFailureReporter,
    FeedSubscriptionManager,
)
from notification_center.infrastructure.repositories import DirectoryRepository
from notification_center.interfaces.api.dependencies import get_notification_services

TENANT = TenantContext("client-1", "condo-1")
OTHER_TENANT = TenantContext("client-1", "condo-2")


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture(autouse=True)
def clean_database():
    """Recreate every table so each test starts from an empty store."""

    database.initialize_database()
    database.Base.metadata.drop_all(bind=database.engine)
    database.Base.metadata.create_all(bind=database.engine)
    get_notification_services.cache_clear()
    yield
    get_notification_services.cache_clear()
    database.Base.metadata.drop_all(bind=database.engine)


@pytest.fixture
def session_factory():
    return database.SessionLocal


@pytest.fixture
def actor() -> Identity:
    return Identity(
        user_id="admin-1",
        display_name="Ana Administradora",
        email="ana@example.com",
        role=ROLE_ADMIN,
        client_id=TENANT.client_id,
        condominium_id=TENANT.condominium_id,
    )


@pytest.fixture
def seed_directory(session_factory):
    """Return a helper that stores ``(uid, role)`` pairs for a tenant."""

    def seed(members, tenant_context: TenantContext = TENANT) -> None:
        with session_factory() as session:
            repository = DirectoryRepository(session)
            for uid, role in members:
                repository.upsert(
                    DirectoryUser(
                        uid=uid,
                        client_id=tenant_context.client_id,
                        condominium_id=tenant_context.condominium_id,
                        role=role,
                    )
                )

    return seed


@pytest.fixture
def default_members(seed_directory):
    """Two administrators and one assistant in the default tenant."""

    seed_directory(
        [
            ("admin-1", ROLE_ADMIN),
            ("admin-2", ROLE_ADMIN),
            ("assistant-1", ROLE_ADMIN_ASSISTANT),
            ("resident-1", "resident"),
        ]
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def feed_manager(session_factory) -> FeedSubscriptionManager:
    return FeedSubscriptionManager(session_factory)


@pytest.fixture
def make_dispatcher(session_factory, actor, clock, feed_manager):
    """Build dispatchers sharing one dedupe guard and feed manager."""

    guard = DedupeGuard(15.0, clock=clock)

    def build(identity: Identity | None = actor, **overrides) -> NotificationDispatcher:
        options = {
            "identity_provider": SessionIdentityProvider(identity),
            "audience_resolver": AudienceResolver(session_factory),
            "dedupe_guard": guard,
            "feed_manager": feed_manager,
            "failure_reporter": DispatchFailureReporter(session_factory),
            "identity_timeout": 0.05,
        }
        options.update(overrides)
        return NotificationDispatcher(session_factory, **options)

    return build


@pytest.fixture
def tenant() -> TenantContext:
    return TENANT


@pytest.fixture
def other_tenant() -> TenantContext:
    return OTHER_TENANT

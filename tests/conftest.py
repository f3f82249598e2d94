from datetime import datetime, timedelta, timezone

import pytest

from printshop.application.access import Actor
from printshop.application.event_hub import OrderEventHub
from printshop.domain.lifecycle import ActorRole
from printshop.domain.models import Store
from printshop.presentation.schemas import order_payload

from fakes import (
    STORE_PRICING, FakeObjectStorage, FakeStoreDirectory, InMemoryUnitOfWork, RecordingPublisher,
)


@pytest.fixture
def store():
    return Store(id="S1", name="Copy Center", pricing=STORE_PRICING)


@pytest.fixture
def uow():
    return InMemoryUnitOfWork()


@pytest.fixture
def stores(store):
    return FakeStoreDirectory([store])


@pytest.fixture
def storage():
    return FakeObjectStorage()


@pytest.fixture
def publisher():
    return RecordingPublisher()


@pytest.fixture
def hub(publisher):
    return OrderEventHub(publisher, serializer=order_payload)


@pytest.fixture
def customer():
    return Actor(id="u1", role=ActorRole.USER)


@pytest.fixture
def store_admin():
    return Actor(id="a1", role=ActorRole.ADMIN, store_id="S1")


@pytest.fixture
def developer():
    return Actor(id="d1", role=ActorRole.DEVELOPER)


@pytest.fixture
def later():
    def _later(minutes: int) -> datetime:
        return datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc) + timedelta(minutes=minutes)
    return _later

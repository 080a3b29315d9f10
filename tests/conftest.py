# tests/conftest.py

import os

# Must be set before `database` is imported anywhere.
os.environ.setdefault("STORAGE_BACKEND", "memory")

import pytest
from fastapi.testclient import TestClient

from database import get_broker, get_calendar_gateway, get_store
from main import app
from storage import MemoryStorage
from store import TrackerStore

from .fakes import FakeCalendarGateway, RecordingBroker


class StepClock:
    """Deterministic millisecond clock: 1000, 1001, ..."""

    def __init__(self, start: int = 1000) -> None:
        self.now = start

    def __call__(self) -> int:
        value = self.now
        self.now += 1
        return value


@pytest.fixture()
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture()
def store(storage: MemoryStorage) -> TrackerStore:
    return TrackerStore(storage, clock=StepClock())


@pytest.fixture()
def gateway() -> FakeCalendarGateway:
    return FakeCalendarGateway()


@pytest.fixture()
def broker() -> RecordingBroker:
    return RecordingBroker()


@pytest.fixture()
def client(store: TrackerStore, gateway: FakeCalendarGateway, broker: RecordingBroker):
    """TestClient wired to the per-test store, fake gateway and recording broker."""
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_calendar_gateway] = lambda: gateway
    app.dependency_overrides[get_broker] = lambda: broker
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()

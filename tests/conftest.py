from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from backend.app.main import app
from shared.store import EventStore, get_store

NOW = datetime(2025, 10, 20, 12, 0, 0, tzinfo=timezone.utc)


class FrozenClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FrozenClock(NOW)


@pytest.fixture
def store(clock):
    return EventStore(clock=clock)


@pytest.fixture
def record_at(store, clock):
    """Record an event as if it arrived at ``moment``, then restore the clock."""
    def _record(moment, name, **properties):
        saved = clock.now
        clock.now = moment
        try:
            return store.record_event(name, properties)
        finally:
            clock.now = saved
    return _record


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()

from datetime import date, datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from photovocab.deps import get_clock
from photovocab.main import app
from photovocab.models.vocab import vocab_doc_to_out
from photovocab.services.rate_limit import FixedWindowRateLimiter
from photovocab.services.srs_sm2 import initial_state
from photovocab.services.store import MemorySrsStore, get_store
from photovocab.utils.time import FixedClock

LEARNER = "learner-1"
OTHER_LEARNER = "learner-2"
NOW = datetime(2026, 3, 10, 9, 30, tzinfo=timezone.utc)
TODAY = date(2026, 3, 10)


def make_doc(item_id: str, minutes: int = 0, **overrides):
    """Vocabulary item document created ``minutes`` after a fixed base time."""
    created = datetime(2026, 1, 1, 8, 0, tzinfo=timezone.utc) + timedelta(minutes=minutes)
    doc = {
        "_id": item_id,
        "userId": LEARNER,
        "listId": None,
        "term": item_id,
        "translation": None,
        "createdAt": created,
        "updatedAt": created,
        **initial_state(),
    }
    doc.update(overrides)
    return doc


def make_item(item_id: str, minutes: int = 0, **overrides):
    return vocab_doc_to_out(make_doc(item_id, minutes, **overrides))


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def store():
    return MemorySrsStore()


@pytest.fixture
def client(store, clock):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_clock] = lambda: clock
    app.state.attempt_limiter = FixedWindowRateLimiter(limit=100, window_seconds=60, clock=clock)
    yield TestClient(app)
    app.dependency_overrides.clear()

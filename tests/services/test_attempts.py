import asyncio
import logging
from datetime import date, datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId
from conftest import LEARNER, NOW, OTHER_LEARNER, make_doc

from photovocab.errors import Forbidden, InvalidRating, NotFound, PersistenceFailure
from photovocab.services.attempts import list_attempts, record_attempt
from photovocab.services.store import MemorySrsStore, MongoSrsStore


class FailingStore(MemorySrsStore):
    def _write(self, item_id, doc, attempt):
        raise PersistenceFailure("disk full")


@pytest.fixture
def seeded_store():
    return MemorySrsStore([make_doc("word-1", 0), make_doc("word-2", 1)])


@pytest.mark.asyncio
async def test_record_attempt_updates_state_and_logs_attempt(seeded_store, clock):
    outcome = await record_attempt(
        seeded_store,
        "word-1",
        LEARNER,
        3,
        session_id="session-9",
        response_time_ms=1800,
        clock=clock,
    )

    assert outcome.isCorrect is True
    assert outcome.newState.intervalDays == 4
    assert outcome.newState.nextReviewDate == date(2026, 3, 14)

    item = seeded_store.items["word-1"]
    assert item["intervalDays"] == 4
    assert item["repetitions"] == 1
    assert item["correctStreak"] == 1
    assert item["nextReviewDate"] == "2026-03-14"
    assert item["lastReviewedAt"] == NOW
    assert item["isLearned"] is False
    assert outcome.item["intervalDays"] == 4

    assert len(seeded_store.attempts) == 1
    attempt = seeded_store.attempts[0]
    assert attempt["vocabularyItemId"] == "word-1"
    assert attempt["userId"] == LEARNER
    assert attempt["sessionId"] == "session-9"
    assert attempt["quizMode"] == "flashcard"
    assert attempt["rating"] == 3
    assert attempt["isCorrect"] is True
    assert attempt["responseTimeMs"] == 1800
    assert attempt["createdAt"] == NOW


@pytest.mark.asyncio
async def test_again_is_not_correct(seeded_store, clock):
    outcome = await record_attempt(seeded_store, "word-1", LEARNER, 1, quiz_mode="typing", clock=clock)

    assert outcome.isCorrect is False
    assert outcome.newState.intervalDays == 1
    assert seeded_store.attempts[0]["quizMode"] == "typing"


@pytest.mark.asyncio
async def test_invalid_rating_rejected_before_storage(clock):
    store = MemorySrsStore()

    with pytest.raises(InvalidRating):
        await record_attempt(store, "does-not-exist", LEARNER, 5, clock=clock)
    assert store.attempts == []


@pytest.mark.asyncio
async def test_missing_item_raises_not_found(seeded_store, clock):
    with pytest.raises(NotFound):
        await record_attempt(seeded_store, "nope", LEARNER, 3, clock=clock)
    assert seeded_store.attempts == []


@pytest.mark.asyncio
async def test_other_learner_item_is_forbidden(seeded_store, clock, caplog):
    before = dict(seeded_store.items["word-1"])

    with caplog.at_level(logging.WARNING, logger="photovocab.services.attempts"):
        with pytest.raises(Forbidden):
            await record_attempt(seeded_store, "word-1", OTHER_LEARNER, 4, clock=clock)

    assert seeded_store.items["word-1"] == before
    assert seeded_store.attempts == []
    assert "owned by another user" in caplog.text


@pytest.mark.asyncio
async def test_persistence_failure_applies_nothing(clock):
    store = FailingStore([make_doc("word-1", 0)])
    before = dict(store.items["word-1"])

    with pytest.raises(PersistenceFailure):
        await record_attempt(store, "word-1", LEARNER, 3, clock=clock)

    assert store.items["word-1"] == before
    assert store.attempts == []


@pytest.mark.asyncio
async def test_concurrent_attempts_on_same_item_do_not_lose_updates(seeded_store, clock):
    await asyncio.gather(
        record_attempt(seeded_store, "word-1", LEARNER, 3, clock=clock),
        record_attempt(seeded_store, "word-1", LEARNER, 3, clock=clock),
    )

    item = seeded_store.items["word-1"]
    assert item["repetitions"] == 2
    assert item["correctStreak"] == 2
    assert item["intervalDays"] == 7
    assert sorted(a["intervalDays"] for a in seeded_store.attempts) == [4, 7]


@pytest.mark.asyncio
async def test_retried_transaction_schedules_from_fresher_read(clock):
    oid = ObjectId()
    session = MagicMock()
    session.__aenter__.return_value = session

    async def run_twice(callback):
        await callback(session)
        return await callback(session)

    session.with_transaction = AsyncMock(side_effect=run_twice)
    client = MagicMock()
    client.start_session = AsyncMock(return_value=session)
    db = MagicMock()
    # a concurrent Good landed between the first read and the retry
    db.vocabulary_items.find_one = AsyncMock(
        side_effect=[make_doc(oid), make_doc(oid, intervalDays=4, repetitions=1, correctStreak=1)]
    )
    db.vocabulary_items.update_one = AsyncMock()
    db.review_attempts.insert_one = AsyncMock()

    outcome = await record_attempt(MongoSrsStore(client, db), str(oid), LEARNER, 3, clock=clock)

    assert outcome.newState.intervalDays == 7
    assert outcome.newState.repetitions == 2
    assert outcome.item["intervalDays"] == 7
    last_attempt = db.review_attempts.insert_one.await_args.args[0]
    assert last_attempt["intervalDays"] == 7
    assert last_attempt["nextReviewDate"] == "2026-03-17"


@pytest.mark.asyncio
async def test_progression_reaches_learned(seeded_store, clock):
    intervals = []
    for rating in (3, 3, 3, 4):
        outcome = await record_attempt(seeded_store, "word-2", LEARNER, rating, clock=clock)
        intervals.append(outcome.newState.intervalDays)

    # 7 * 2.5 = 17.5 rounds up to 18; then round(18 * 2.6) = 47, * 1.3 = 61
    assert intervals == [4, 7, 18, 61]
    assert seeded_store.items["word-2"]["isLearned"] is True


@pytest.mark.asyncio
async def test_list_attempts_newest_first(seeded_store, clock):
    await record_attempt(seeded_store, "word-1", LEARNER, 3, clock=clock)
    clock.advance(minutes=5)
    await record_attempt(seeded_store, "word-2", LEARNER, 2, clock=clock)
    clock.advance(minutes=5)
    await record_attempt(seeded_store, "word-1", LEARNER, 1, clock=clock)

    rows = await list_attempts(seeded_store, LEARNER)
    assert [(row["vocabularyItemId"], row["rating"]) for row in rows] == [
        ("word-1", 1),
        ("word-2", 2),
        ("word-1", 3),
    ]

    only_first = await list_attempts(seeded_store, LEARNER, item_id="word-1", limit=1)
    assert [row["rating"] for row in only_first] == [1]
    assert only_first[0]["createdAt"] == datetime(2026, 3, 10, 9, 40, tzinfo=timezone.utc)

    assert await list_attempts(seeded_store, OTHER_LEARNER) == []

import logging
from dataclasses import dataclass
from typing import Any

from photovocab.errors import Forbidden
from photovocab.services.srs_sm2 import SrsResult, SrsState, calculate_next_review, validate_rating
from photovocab.services.store import BaseSrsStore
from photovocab.utils.time import Clock, SystemClock

logger = logging.getLogger(__name__)

DEFAULT_QUIZ_MODE = "flashcard"


@dataclass(frozen=True)
class AttemptOutcome:
    newState: SrsResult
    isCorrect: bool
    item: dict[str, Any]


async def record_attempt(
    store: BaseSrsStore,
    item_id: str,
    learner_id: str,
    rating: int,
    session_id: str | None = None,
    quiz_mode: str | None = None,
    response_time_ms: int | None = None,
    clock: Clock | None = None,
) -> AttemptOutcome:
    rating = validate_rating(rating)
    clock = clock or SystemClock()
    now = clock.now()
    today = clock.today()
    is_correct = rating >= 2
    computed: dict[str, SrsResult] = {}

    def _apply(doc: dict[str, Any]) -> tuple[dict[str, Any], dict[str, Any]]:
        if doc.get("userId") != learner_id:
            raise Forbidden(item_id, learner_id)
        result = calculate_next_review(SrsState.from_doc(doc), rating, today)
        # a retried transaction calls this again with the fresher document
        computed["result"] = result
        update = {**result.to_doc(), "lastReviewedAt": now, "updatedAt": now}
        attempt = {
            "userId": learner_id,
            "sessionId": session_id,
            "quizMode": quiz_mode or DEFAULT_QUIZ_MODE,
            "rating": rating,
            "isCorrect": is_correct,
            "responseTimeMs": response_time_ms,
            "intervalDays": result.intervalDays,
            "nextReviewDate": result.to_doc()["nextReviewDate"],
            "createdAt": now,
        }
        return update, attempt

    try:
        updated = await store.apply_review(item_id, _apply)
    except Forbidden:
        logger.warning("User %s attempted to review item %s owned by another user", learner_id, item_id)
        raise

    result = computed["result"]
    logger.info(
        "Recorded rating %d for item %s (user %s): interval %d -> next review %s",
        rating,
        item_id,
        learner_id,
        result.intervalDays,
        result.nextReviewDate,
    )
    return AttemptOutcome(newState=result, isCorrect=is_correct, item=updated)


async def list_attempts(
    store: BaseSrsStore,
    learner_id: str,
    item_id: str | None = None,
    limit: int = 20,
) -> list[dict[str, Any]]:
    if limit < 1:
        return []
    return await store.list_attempts(learner_id, item_id=item_id, limit=limit)

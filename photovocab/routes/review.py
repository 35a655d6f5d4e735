from fastapi import APIRouter, Depends, HTTPException, Query

from photovocab.deps import get_attempt_limiter, get_clock, get_learner_id, get_owned_item
from photovocab.errors import Forbidden, InvalidRating, NotFound, PersistenceFailure, RateLimited
from photovocab.models.review import (
    AttemptCreate,
    AttemptListOut,
    AttemptResponse,
    PreviewOut,
    RatingPreview,
    SrsStateOut,
    attempt_doc_to_out,
)
from photovocab.models.vocab import vocab_doc_to_out
from photovocab.services.attempts import list_attempts, record_attempt
from photovocab.services.rate_limit import FixedWindowRateLimiter
from photovocab.services.srs_sm2 import SrsState, format_interval, interval_previews, rating_label, validate_rating
from photovocab.services.store import BaseSrsStore, get_store
from photovocab.utils.time import Clock

router = APIRouter(prefix="/word-attempts", tags=["review"])


@router.post("", response_model=AttemptResponse)
async def submit_attempt(
    payload: AttemptCreate,
    learner_id: str = Depends(get_learner_id),
    store: BaseSrsStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
    limiter: FixedWindowRateLimiter = Depends(get_attempt_limiter),
):
    # rejected ratings never reach storage and do not count against the limit
    try:
        validate_rating(payload.rating)
    except InvalidRating as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    try:
        limiter.hit(learner_id)
    except RateLimited as exc:
        raise HTTPException(
            status_code=429,
            detail=str(exc),
            headers={"Retry-After": str(exc.retry_after)},
        )

    try:
        outcome = await record_attempt(
            store,
            item_id=payload.vocabularyItemId,
            learner_id=learner_id,
            rating=payload.rating,
            session_id=payload.sessionId,
            quiz_mode=payload.quizMode,
            response_time_ms=payload.responseTimeMs,
            clock=clock,
        )
    except InvalidRating as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except NotFound:
        raise HTTPException(status_code=404, detail="Vocabulary item not found")
    except Forbidden:
        raise HTTPException(status_code=403, detail="Forbidden")
    except PersistenceFailure:
        raise HTTPException(status_code=500, detail="Failed to record attempt")

    state = outcome.newState
    return AttemptResponse(
        newState=SrsStateOut(
            easinessFactor=state.easinessFactor,
            intervalDays=state.intervalDays,
            repetitions=state.repetitions,
            correctStreak=state.correctStreak,
            nextReviewDate=state.nextReviewDate,
            isLearned=state.isLearned,
        ),
        isCorrect=outcome.isCorrect,
        vocab=vocab_doc_to_out(outcome.item),
    )


@router.get("", response_model=AttemptListOut)
async def attempt_history(
    vocabularyItemId: str | None = None,
    limit: int = Query(default=20, ge=1, le=200),
    learner_id: str = Depends(get_learner_id),
    store: BaseSrsStore = Depends(get_store),
):
    docs = await list_attempts(store, learner_id, item_id=vocabularyItemId, limit=limit)
    return AttemptListOut(attempts=[attempt_doc_to_out(doc) for doc in docs])


@router.get("/preview/{item_id}", response_model=PreviewOut)
async def preview_intervals(doc: dict = Depends(get_owned_item), clock: Clock = Depends(get_clock)):
    previews = interval_previews(SrsState.from_doc(doc), clock.today())
    return PreviewOut(
        vocabularyItemId=str(doc["_id"]),
        previews=[
            RatingPreview(
                rating=rating,
                label=rating_label(rating),
                intervalDays=days,
                formatted=format_interval(days),
            )
            for rating, days in previews.items()
        ],
    )

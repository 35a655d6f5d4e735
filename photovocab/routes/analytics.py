from datetime import timedelta

from fastapi import APIRouter, Depends

from photovocab.deps import get_clock, get_learner_id
from photovocab.models.analytics import ForecastDay, SrsStatsOut
from photovocab.models.vocab import vocab_doc_to_out
from photovocab.services.srs_sm2 import DEFAULT_EASINESS_FACTOR, is_due_for_review
from photovocab.services.store import BaseSrsStore, get_store
from photovocab.utils.time import Clock

router = APIRouter(prefix="/stats", tags=["stats"])

FORECAST_DAYS = 7


@router.get("/srs", response_model=SrsStatsOut)
async def srs_stats(
    learner_id: str = Depends(get_learner_id),
    store: BaseSrsStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
):
    now = clock.now()
    today = clock.today()
    week_ago = now - timedelta(days=7)

    items = [vocab_doc_to_out(doc) for doc in await store.list_learner_items(learner_id)]
    active = [item for item in items if not item.isLearned]
    learned = [item for item in items if item.isLearned]

    due_today = sum(1 for item in active if is_due_for_review(item.nextReviewDate, today))
    mastered_this_week = sum(
        1 for item in learned if item.lastReviewedAt is not None and item.lastReviewedAt >= week_ago
    )
    average_ease = (
        round(sum(item.easinessFactor for item in items) / len(items), 2) if items else DEFAULT_EASINESS_FACTOR
    )

    forecast: list[ForecastDay] = []
    for offset in range(FORECAST_DAYS):
        day = today + timedelta(days=offset)
        forecast.append(
            ForecastDay(date=day, count=sum(1 for item in active if item.nextReviewDate == day))
        )

    return SrsStatsOut(
        totalWords=len(items),
        learnedWords=len(learned),
        dueToday=due_today,
        masteredThisWeek=mastered_this_week,
        averageEaseFactor=average_ease,
        reviewForecast=forecast,
    )

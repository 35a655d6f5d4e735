"""SM-2 scheduling with a four-button rating scale.

Ratings: 1 = Again, 2 = Hard, 3 = Good, 4 = Easy. The first two successful
reviews use fixed interval tables; from the third success on the interval grows
by the easiness factor.
"""

import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any

from photovocab.errors import InvalidRating
from photovocab.utils.time import parse_day

MIN_EASINESS_FACTOR = 1.3
DEFAULT_EASINESS_FACTOR = 2.5
MASTERED_INTERVAL_THRESHOLD = 21

RATINGS = (1, 2, 3, 4)
RATING_LABELS = {1: "Again", 2: "Hard", 3: "Good", 4: "Easy"}
_RATING_QUALITY = {1: 1, 2: 3, 3: 4, 4: 5}

# interval (days) by rating for the first and second successful review
_FIRST_SUCCESS_INTERVALS = {2: 2, 3: 4, 4: 7}
_SECOND_SUCCESS_INTERVALS = {2: 4, 3: 7, 4: 14}

HARD_MODIFIER = 0.85
EASY_MODIFIER = 1.3


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def validate_rating(rating: Any) -> int:
    # bool is an int subclass; True must not pass as Again
    if isinstance(rating, bool) or not isinstance(rating, int) or rating not in RATINGS:
        raise InvalidRating(rating)
    return rating


@dataclass(frozen=True)
class SrsState:
    easinessFactor: float = DEFAULT_EASINESS_FACTOR
    intervalDays: int = 0
    repetitions: int = 0
    correctStreak: int = 0

    @classmethod
    def from_doc(cls, doc: dict[str, Any]) -> "SrsState":
        ef = doc.get("easinessFactor")
        return cls(
            easinessFactor=float(ef) if ef is not None else DEFAULT_EASINESS_FACTOR,
            intervalDays=int(doc.get("intervalDays") or 0),
            repetitions=int(doc.get("repetitions") or 0),
            correctStreak=int(doc.get("correctStreak") or 0),
        )


@dataclass(frozen=True)
class SrsResult(SrsState):
    nextReviewDate: date | None = None
    isLearned: bool = False

    def to_doc(self) -> dict[str, Any]:
        return {
            "easinessFactor": self.easinessFactor,
            "intervalDays": self.intervalDays,
            "repetitions": self.repetitions,
            "correctStreak": self.correctStreak,
            "nextReviewDate": self.nextReviewDate.isoformat() if self.nextReviewDate else None,
            "isLearned": self.isLearned,
        }


def initial_state() -> dict[str, Any]:
    return {
        "easinessFactor": DEFAULT_EASINESS_FACTOR,
        "intervalDays": 0,
        "repetitions": 0,
        "correctStreak": 0,
        "nextReviewDate": None,
        "lastReviewedAt": None,
        "isLearned": False,
    }


def rating_to_quality(rating: int) -> int:
    return _RATING_QUALITY[validate_rating(rating)]


def next_easiness_factor(easiness_factor: float, quality: int) -> float:
    miss = 5 - quality
    return max(MIN_EASINESS_FACTOR, easiness_factor + (0.1 - miss * (0.08 + miss * 0.02)))


def is_learned(interval_days: int) -> bool:
    return interval_days >= MASTERED_INTERVAL_THRESHOLD


def calculate_next_review(state: SrsState, rating: int, today: date) -> SrsResult:
    """Return the state that follows ``state`` after a review rated ``rating``.

    ``today`` is the local calendar day of the review; the next review date is
    ``today + intervalDays``. The easiness factor is always updated from the
    quality of the given rating, including on Again.
    """
    rating = validate_rating(rating)
    if isinstance(today, datetime):
        today = today.date()

    ease = next_easiness_factor(state.easinessFactor, rating_to_quality(rating))
    interval = state.intervalDays
    repetitions = state.repetitions
    streak = state.correctStreak

    if rating == 1:
        interval = 1
        repetitions = 0
        streak = 0
    else:
        streak += 1
        if repetitions == 0:
            interval = _FIRST_SUCCESS_INTERVALS[rating]
        elif repetitions == 1:
            interval = _SECOND_SUCCESS_INTERVALS[rating]
        else:
            interval = round_half_up(interval * ease)
            if rating == 2:
                interval = max(1, round_half_up(interval * HARD_MODIFIER))
            elif rating == 4:
                interval = round_half_up(interval * EASY_MODIFIER)
        repetitions += 1

    return SrsResult(
        easinessFactor=ease,
        intervalDays=int(interval),
        repetitions=int(repetitions),
        correctStreak=int(streak),
        nextReviewDate=today + timedelta(days=interval),
        isLearned=is_learned(interval),
    )


def is_due_for_review(next_review_date: date | datetime | str | None, today: date) -> bool:
    review_day = parse_day(next_review_date)
    if review_day is None:
        return True
    return review_day <= today


def interval_previews(state: SrsState, today: date) -> dict[int, int]:
    previews = {1: 1}
    for rating in (2, 3, 4):
        previews[rating] = calculate_next_review(state, rating, today).intervalDays
    return previews


def rating_label(rating: int) -> str:
    return RATING_LABELS.get(rating, "Unknown")


def format_interval(days: int) -> str:
    if days <= 0:
        return "Now"
    if days == 1:
        return "1d"
    if days < 7:
        return f"{days}d"
    if days < 30:
        return f"{round_half_up(days / 7)}w"
    if days < 365:
        return f"{round_half_up(days / 30)}mo"
    return f"{days / 365:.1f}y"

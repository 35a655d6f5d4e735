from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field

from photovocab.models.vocab import VocabOut
from photovocab.utils.time import parse_day


class AttemptCreate(BaseModel):
    vocabularyItemId: str = Field(min_length=1)
    # strict: true, "3" and 2.0 are rejected instead of coerced; range is checked by the recorder
    rating: int = Field(strict=True)
    sessionId: str | None = None
    quizMode: str | None = None
    responseTimeMs: int | None = Field(default=None, ge=0)


class SrsStateOut(BaseModel):
    easinessFactor: float
    intervalDays: int
    repetitions: int
    correctStreak: int
    nextReviewDate: date
    isLearned: bool


class AttemptResponse(BaseModel):
    success: bool = True
    newState: SrsStateOut
    isCorrect: bool
    vocab: VocabOut


class AttemptOut(BaseModel):
    id: str
    vocabularyItemId: str
    userId: str
    sessionId: str | None
    quizMode: str
    rating: int
    isCorrect: bool
    responseTimeMs: int | None
    intervalDays: int | None
    nextReviewDate: date | None
    createdAt: datetime


class AttemptListOut(BaseModel):
    attempts: list[AttemptOut]


class RatingPreview(BaseModel):
    rating: int
    label: str
    intervalDays: int
    formatted: str


class PreviewOut(BaseModel):
    vocabularyItemId: str
    previews: list[RatingPreview]


def attempt_doc_to_out(doc: dict[str, Any]) -> AttemptOut:
    return AttemptOut(
        id=str(doc["_id"]),
        vocabularyItemId=str(doc["vocabularyItemId"]),
        userId=str(doc.get("userId", "")),
        sessionId=doc.get("sessionId"),
        quizMode=doc.get("quizMode") or "flashcard",
        rating=int(doc["rating"]),
        isCorrect=bool(doc.get("isCorrect", int(doc["rating"]) >= 2)),
        responseTimeMs=doc.get("responseTimeMs"),
        intervalDays=doc.get("intervalDays"),
        nextReviewDate=parse_day(doc.get("nextReviewDate")),
        createdAt=doc["createdAt"],
    )

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field

from photovocab.utils.time import parse_day


class VocabCreate(BaseModel):
    term: str = Field(min_length=1)
    translation: str | None = None
    listId: str | None = None
    nextReviewDate: date | None = None


class VocabOut(BaseModel):
    id: str
    userId: str
    listId: str | None
    term: str
    translation: str | None
    easinessFactor: float
    intervalDays: int
    repetitions: int
    correctStreak: int
    nextReviewDate: date | None
    lastReviewedAt: datetime | None
    isLearned: bool
    createdAt: datetime
    updatedAt: datetime


class DueWordsOut(BaseModel):
    items: list[VocabOut]
    dueCount: int
    newCount: int
    total: int


def vocab_doc_to_out(doc: dict[str, Any]) -> VocabOut:
    ef = doc.get("easinessFactor")
    return VocabOut(
        id=str(doc["_id"]),
        userId=str(doc.get("userId", "")),
        listId=str(doc["listId"]) if doc.get("listId") is not None else None,
        term=doc.get("term", ""),
        translation=doc.get("translation"),
        easinessFactor=float(ef) if ef is not None else 2.5,
        intervalDays=int(doc.get("intervalDays") or 0),
        repetitions=int(doc.get("repetitions") or 0),
        correctStreak=int(doc.get("correctStreak") or 0),
        nextReviewDate=parse_day(doc.get("nextReviewDate")),
        lastReviewedAt=doc.get("lastReviewedAt"),
        isLearned=bool(doc.get("isLearned", False)),
        createdAt=doc["createdAt"],
        updatedAt=doc.get("updatedAt") or doc["createdAt"],
    )

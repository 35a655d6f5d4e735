import datetime

from pydantic import BaseModel


class ForecastDay(BaseModel):
    date: datetime.date
    count: int


class SrsStatsOut(BaseModel):
    totalWords: int
    learnedWords: int
    dueToday: int
    masteredThisWeek: int
    averageEaseFactor: float
    reviewForecast: list[ForecastDay]

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable

from photovocab.models.vocab import VocabOut, vocab_doc_to_out
from photovocab.services.srs_sm2 import is_due_for_review
from photovocab.services.store import BaseSrsStore

logger = logging.getLogger(__name__)


@dataclass
class DueSelection:
    items: list[VocabOut] = field(default_factory=list)
    dueCount: int = 0
    newCount: int = 0

    @property
    def total(self) -> int:
        return self.dueCount + self.newCount


def _due_sort_key(item: VocabOut) -> tuple:
    # never-reviewed (no date) first, then oldest review date, then creation order
    return (item.nextReviewDate is not None, item.nextReviewDate or date.min, item.createdAt)


def _is_fresh(item: VocabOut, today: date) -> bool:
    return (
        not item.isLearned
        and item.lastReviewedAt is None
        and item.nextReviewDate is not None
        and item.nextReviewDate > today
    )


def select_due_items(
    items: Iterable[VocabOut],
    today: date,
    limit: int,
    include_new: bool = True,
    list_id: str | None = None,
) -> DueSelection:
    """Build the practice queue: due items first, then fresh items up to ``limit``."""
    if limit < 0:
        raise ValueError("limit must be >= 0")

    universe = [item for item in items if list_id is None or item.listId == list_id]

    due = sorted(
        (item for item in universe if not item.isLearned and is_due_for_review(item.nextReviewDate, today)),
        key=_due_sort_key,
    )
    selected = due[:limit]

    fresh: list[VocabOut] = []
    if include_new and len(due) < limit:
        # newest first; reverse=True keeps equal timestamps in input order
        fresh = sorted(
            (item for item in universe if _is_fresh(item, today)),
            key=lambda item: item.createdAt,
            reverse=True,
        )[: limit - len(due)]

    return DueSelection(items=selected + fresh, dueCount=len(due), newCount=len(fresh))


async def get_due_items(
    store: BaseSrsStore,
    learner_id: str,
    today: date,
    limit: int,
    include_new: bool = True,
    list_id: str | None = None,
) -> DueSelection:
    docs = await store.list_learner_items(learner_id, list_id=list_id)
    selection = select_due_items(
        (vocab_doc_to_out(doc) for doc in docs),
        today=today,
        limit=limit,
        include_new=include_new,
        list_id=list_id,
    )
    logger.debug(
        "Due selection for user %s: %d due, %d new (limit %d)",
        learner_id,
        selection.dueCount,
        selection.newCount,
        limit,
    )
    return selection

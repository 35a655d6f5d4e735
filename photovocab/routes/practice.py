from fastapi import APIRouter, Depends, Query

from photovocab.deps import get_clock, get_learner_id
from photovocab.models.vocab import DueWordsOut
from photovocab.services.due_selector import get_due_items
from photovocab.services.store import BaseSrsStore, get_store
from photovocab.utils.time import Clock

router = APIRouter(prefix="/practice", tags=["practice"])


@router.get("/due-words", response_model=DueWordsOut)
async def due_words(
    collection: str | None = None,
    limit: int = Query(default=50, ge=0, le=500),
    includeNew: bool = True,
    learner_id: str = Depends(get_learner_id),
    store: BaseSrsStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
):
    list_id = collection if collection and collection != "all" else None
    selection = await get_due_items(
        store,
        learner_id,
        today=clock.today(),
        limit=limit,
        include_new=includeNew,
        list_id=list_id,
    )
    return DueWordsOut(
        items=selection.items,
        dueCount=selection.dueCount,
        newCount=selection.newCount,
        total=selection.total,
    )

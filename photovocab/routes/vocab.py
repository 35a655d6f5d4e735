from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from photovocab.deps import get_clock, get_learner_id, get_owned_item
from photovocab.errors import PersistenceFailure
from photovocab.models.vocab import VocabCreate, VocabOut, vocab_doc_to_out
from photovocab.services.srs_sm2 import initial_state
from photovocab.services.store import BaseSrsStore, get_store
from photovocab.utils.time import Clock

router = APIRouter(prefix="/vocabulary", tags=["vocabulary"])


@router.post("", response_model=VocabOut)
async def create_vocab(
    payload: VocabCreate,
    learner_id: str = Depends(get_learner_id),
    store: BaseSrsStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
):
    term = payload.term.strip()
    if not term:
        raise HTTPException(status_code=422, detail="Term is empty")

    now = clock.now()
    create_doc: dict[str, Any] = {
        "userId": learner_id,
        "listId": payload.listId,
        "term": term,
        "translation": payload.translation.strip() if payload.translation else None,
        "createdAt": now,
        "updatedAt": now,
        **initial_state(),
    }
    if payload.nextReviewDate is not None:
        create_doc["nextReviewDate"] = payload.nextReviewDate.isoformat()

    try:
        doc = await store.insert_item(create_doc)
    except PersistenceFailure as exc:
        raise HTTPException(status_code=500, detail=str(exc))
    return vocab_doc_to_out(doc)


@router.get("/{item_id}", response_model=VocabOut)
async def get_vocab(doc: dict = Depends(get_owned_item)):
    return vocab_doc_to_out(doc)

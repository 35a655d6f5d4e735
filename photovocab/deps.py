import logging
from typing import Any

from fastapi import Depends, Header, HTTPException, Request

from photovocab.services.rate_limit import FixedWindowRateLimiter
from photovocab.services.store import BaseSrsStore, get_store
from photovocab.utils.time import Clock, SystemClock

logger = logging.getLogger(__name__)

_system_clock = SystemClock()


def get_clock() -> Clock:
    return _system_clock


def get_learner_id(x_user_id: str | None = Header(default=None)) -> str:
    learner_id = (x_user_id or "").strip()
    if not learner_id:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return learner_id


def get_attempt_limiter(request: Request) -> FixedWindowRateLimiter:
    return request.app.state.attempt_limiter


async def get_owned_item(
    item_id: str,
    learner_id: str = Depends(get_learner_id),
    store: BaseSrsStore = Depends(get_store),
) -> dict[str, Any]:
    doc = await store.get_item(item_id)
    if not doc:
        raise HTTPException(status_code=404, detail="Vocabulary item not found")
    if doc.get("userId") != learner_id:
        logger.warning("User %s requested item %s owned by another user", learner_id, item_id)
        raise HTTPException(status_code=403, detail="Forbidden")
    return doc

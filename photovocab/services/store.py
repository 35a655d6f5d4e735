import asyncio
import copy
import logging
import uuid
from typing import Any, Callable

from bson import ObjectId
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import PyMongoError

from photovocab.config import get_settings
from photovocab.db import get_client, get_db
from photovocab.errors import NotFound, PersistenceFailure

logger = logging.getLogger(__name__)

# Receives the current item document, returns (item $set fields, attempt document).
ReviewMutation = Callable[[dict[str, Any]], tuple[dict[str, Any], dict[str, Any]]]


class BaseSrsStore:
    async def get_item(self, item_id: str) -> dict[str, Any] | None:
        raise NotImplementedError

    async def list_learner_items(self, learner_id: str, list_id: str | None = None) -> list[dict[str, Any]]:
        raise NotImplementedError

    async def insert_item(self, doc: dict[str, Any]) -> dict[str, Any]:
        raise NotImplementedError

    async def apply_review(self, item_id: str, mutate: ReviewMutation) -> dict[str, Any]:
        """Load the item, apply ``mutate`` and write the item and attempt as one unit.

        Raises NotFound when the item does not exist. Errors raised by ``mutate``
        propagate and nothing is written. Storage errors become PersistenceFailure.
        """
        raise NotImplementedError

    async def list_attempts(
        self,
        learner_id: str,
        item_id: str | None = None,
        limit: int = 20,
    ) -> list[dict[str, Any]]:
        raise NotImplementedError


def _parse_object_id(raw: str) -> ObjectId | None:
    if isinstance(raw, ObjectId):
        return raw
    if not ObjectId.is_valid(raw):
        return None
    return ObjectId(raw)


class MongoSrsStore(BaseSrsStore):
    def __init__(self, client, db):
        self._client = client
        self._db = db

    async def get_item(self, item_id: str) -> dict[str, Any] | None:
        oid = _parse_object_id(item_id)
        if oid is None:
            return None
        return await self._db.vocabulary_items.find_one({"_id": oid})

    async def list_learner_items(self, learner_id: str, list_id: str | None = None) -> list[dict[str, Any]]:
        query: dict[str, Any] = {"userId": learner_id}
        if list_id is not None:
            query["listId"] = list_id
        cursor = self._db.vocabulary_items.find(query).sort([("createdAt", ASCENDING), ("_id", ASCENDING)])
        return await cursor.to_list(length=None)

    async def insert_item(self, doc: dict[str, Any]) -> dict[str, Any]:
        try:
            result = await self._db.vocabulary_items.insert_one(doc)
        except PyMongoError as exc:
            logger.exception("Failed to insert vocabulary item for user %s", doc.get("userId"))
            raise PersistenceFailure("Failed to create vocabulary item") from exc
        return {**doc, "_id": result.inserted_id}

    async def apply_review(self, item_id: str, mutate: ReviewMutation) -> dict[str, Any]:
        oid = _parse_object_id(item_id)
        if oid is None:
            raise NotFound(item_id)

        async def _txn(session) -> dict[str, Any]:
            # Reads inside the transaction see committed state; a concurrent
            # writer on the same item triggers a write conflict and a retry.
            doc = await self._db.vocabulary_items.find_one({"_id": oid}, session=session)
            if doc is None:
                raise NotFound(item_id)
            update, attempt = mutate(doc)
            await self._db.review_attempts.insert_one({**attempt, "vocabularyItemId": oid}, session=session)
            await self._db.vocabulary_items.update_one({"_id": oid}, {"$set": update}, session=session)
            return {**doc, **update}

        try:
            async with await self._client.start_session() as session:
                return await session.with_transaction(_txn)
        except PyMongoError as exc:
            logger.exception("Review transaction failed for item %s", item_id)
            raise PersistenceFailure("Failed to record attempt") from exc

    async def list_attempts(
        self,
        learner_id: str,
        item_id: str | None = None,
        limit: int = 20,
    ) -> list[dict[str, Any]]:
        query: dict[str, Any] = {"userId": learner_id}
        if item_id is not None:
            oid = _parse_object_id(item_id)
            if oid is None:
                return []
            query["vocabularyItemId"] = oid
        cursor = self._db.review_attempts.find(query).sort([("createdAt", DESCENDING), ("_id", DESCENDING)]).limit(limit)
        return await cursor.to_list(length=limit)


class MemorySrsStore(BaseSrsStore):
    """Process-local store. Each item has its own lock, so writes to one item are serialized."""

    def __init__(self, items: list[dict[str, Any]] | None = None):
        self.items: dict[str, dict[str, Any]] = {}
        self.attempts: list[dict[str, Any]] = []
        self._locks: dict[str, asyncio.Lock] = {}
        for doc in items or []:
            self._put(doc)

    def _put(self, doc: dict[str, Any]) -> dict[str, Any]:
        stored = copy.deepcopy(doc)
        stored.setdefault("_id", uuid.uuid4().hex)
        stored["_id"] = str(stored["_id"])
        self.items[stored["_id"]] = stored
        return copy.deepcopy(stored)

    def _lock_for(self, item_id: str) -> asyncio.Lock:
        lock = self._locks.get(item_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[item_id] = lock
        return lock

    def _write(self, item_id: str, doc: dict[str, Any], attempt: dict[str, Any]) -> None:
        self.attempts.append(attempt)
        self.items[item_id] = doc

    async def get_item(self, item_id: str) -> dict[str, Any] | None:
        doc = self.items.get(str(item_id))
        return copy.deepcopy(doc) if doc is not None else None

    async def list_learner_items(self, learner_id: str, list_id: str | None = None) -> list[dict[str, Any]]:
        docs = [
            doc
            for doc in self.items.values()
            if doc.get("userId") == learner_id and (list_id is None or doc.get("listId") == list_id)
        ]
        docs.sort(key=lambda doc: doc["createdAt"])
        return copy.deepcopy(docs)

    async def insert_item(self, doc: dict[str, Any]) -> dict[str, Any]:
        return self._put(doc)

    async def apply_review(self, item_id: str, mutate: ReviewMutation) -> dict[str, Any]:
        key = str(item_id)
        async with self._lock_for(key):
            current = self.items.get(key)
            if current is None:
                raise NotFound(key)
            update, attempt = mutate(copy.deepcopy(current))
            updated = {**copy.deepcopy(current), **update}
            attempt = {**attempt, "_id": uuid.uuid4().hex, "vocabularyItemId": key}
            self._write(key, updated, attempt)
            return copy.deepcopy(updated)

    async def list_attempts(
        self,
        learner_id: str,
        item_id: str | None = None,
        limit: int = 20,
    ) -> list[dict[str, Any]]:
        rows = [
            row
            for row in self.attempts
            if row.get("userId") == learner_id and (item_id is None or row.get("vocabularyItemId") == str(item_id))
        ]
        # attempts are appended in commit order, so reversing gives newest first
        rows = list(reversed(rows))
        return copy.deepcopy(rows[:limit])


_store: BaseSrsStore | None = None


def get_store() -> BaseSrsStore:
    global _store
    if _store is None:
        backend = get_settings().store_backend
        if backend == "memory":
            _store = MemorySrsStore()
        elif backend == "mongo":
            _store = MongoSrsStore(get_client(), get_db())
        else:
            raise RuntimeError(f"Unknown STORE_BACKEND {backend!r}; expected 'mongo' or 'memory'")
    return _store

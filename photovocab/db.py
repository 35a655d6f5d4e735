from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from photovocab.config import get_settings, validate_mongo_settings

_client: AsyncIOMotorClient | None = None
_db: AsyncIOMotorDatabase | None = None


def get_client() -> AsyncIOMotorClient:
    global _client
    if _client is None:
        settings = validate_mongo_settings(get_settings())
        _client = AsyncIOMotorClient(
            settings.mongo_url,
            serverSelectionTimeoutMS=5000,
            tz_aware=True,
        )
    return _client


def get_db() -> AsyncIOMotorDatabase:
    global _db
    if _db is None:
        settings = validate_mongo_settings(get_settings())
        _db = get_client()[settings.mongo_db]
    return _db


async def ping_db() -> None:
    await get_client().admin.command("ping")


async def create_indexes() -> None:
    db = get_db()
    await db.vocabulary_items.create_index(
        [("userId", ASCENDING), ("nextReviewDate", ASCENDING)],
        name="idx_vocabulary_items_user_next_review",
    )
    await db.vocabulary_items.create_index(
        [("userId", ASCENDING), ("listId", ASCENDING)],
        name="idx_vocabulary_items_user_list",
    )
    await db.review_attempts.create_index(
        [("userId", ASCENDING), ("vocabularyItemId", ASCENDING), ("createdAt", DESCENDING)],
        name="idx_review_attempts_user_item_created",
    )
    await db.review_attempts.create_index(
        [("userId", ASCENDING), ("createdAt", DESCENDING)],
        name="idx_review_attempts_user_created",
    )

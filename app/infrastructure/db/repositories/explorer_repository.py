"""Generic collection browsing used by the explorer endpoints."""

from __future__ import annotations

import logging

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from app.config.settings import settings
from app.infrastructure.db.repositories.gstr3b_repository import (
    StorageUnavailableError,
    id_candidates,
)

logger = logging.getLogger("explorer_repository")


class ExplorerRepository:
    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self.db = db

    async def list_collections(self) -> list[str]:
        try:
            names = await self.db.list_collection_names()
        except PyMongoError as exc:
            logger.error("Listing collections failed: %s", exc)
            raise StorageUnavailableError(str(exc)) from exc
        return sorted(names)

    async def get_fields(self, collection: str) -> list[str] | None:
        """Top-level keys of one sample document; None for an empty collection."""
        try:
            sample = await self.db[collection].find_one({})
        except PyMongoError as exc:
            logger.error("Sampling %s failed: %s", collection, exc)
            raise StorageUnavailableError(str(exc)) from exc
        if not sample:
            return None
        return list(sample.keys())

    async def execute_query(
        self,
        collection: str,
        fields: list[str] | None = None,
        limit: int | None = None,
    ) -> list[dict]:
        projection = {field: 1 for field in fields} if fields else None
        limit = max(1, min(limit or settings.DEFAULT_QUERY_LIMIT, settings.MAX_QUERY_LIMIT))
        try:
            cursor = self.db[collection].find({}, projection).limit(limit)
            return await cursor.to_list(length=limit)
        except PyMongoError as exc:
            logger.error("Query on %s failed: %s", collection, exc)
            raise StorageUnavailableError(str(exc)) from exc

    async def find_document(self, collection: str, document_id: str) -> dict | None:
        try:
            return await self.db[collection].find_one({"_id": {"$in": id_candidates(document_id)}})
        except PyMongoError as exc:
            logger.error("Lookup %s/%s failed: %s", collection, document_id, exc)
            raise StorageUnavailableError(str(exc)) from exc

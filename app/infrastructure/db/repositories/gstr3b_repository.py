# app/infrastructure/db/repositories/gstr3b_repository.py
"""Read-only access to the collections the GSTR-3B report is built from."""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from typing import Any

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from app.config.settings import settings

logger = logging.getLogger("gstr3b_repository")


class StorageUnavailableError(Exception):
    """A MongoDB read failed. Retries, if any, belong to the caller."""


def id_candidates(raw_id: str) -> list[Any]:
    """Match both string ids and ObjectIds for the same hex value."""
    candidates: list[Any] = [raw_id]
    if ObjectId.is_valid(raw_id):
        candidates.append(ObjectId(raw_id))
    return candidates


class Gstr3bRepository:
    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self.db = db

    async def _find(self, collection: str, query: dict) -> list[dict]:
        try:
            return await self.db[collection].find(query).to_list(length=None)
        except PyMongoError as exc:
            logger.error("Read from %s failed: %s", collection, exc)
            raise StorageUnavailableError(f"Could not read {collection}: {exc}") from exc

    async def find_company(self, company_id: str) -> dict | None:
        collection = settings.COMPANIES_COLLECTION
        try:
            return await self.db[collection].find_one({"_id": {"$in": id_candidates(company_id)}})
        except PyMongoError as exc:
            logger.error("Company lookup %s failed: %s", company_id, exc)
            raise StorageUnavailableError(f"Could not read {collection}: {exc}") from exc

    async def find_supply_transactions(self, company_id: str, year: int, month: int) -> list[dict]:
        return await self._find(
            settings.SUPPLY_TRANSACTIONS_COLLECTION,
            {"companyId": company_id, "period.year": year, "period.month": month},
        )

    async def find_itc_payments(self, company_id: str, year: int, month: int) -> list[dict]:
        return await self._find(
            settings.ITC_PAYMENTS_COLLECTION,
            {"companyId": company_id, "period.year": year, "period.month": month},
        )

    async def find_transactions(self, company_id: str, start: date, end: date) -> list[dict]:
        """Transactions dated from ``start`` through ``end``, both days inclusive."""
        return await self._find(
            settings.TRANSACTIONS_COLLECTION,
            {
                "companyId": company_id,
                "date": {
                    "$gte": datetime.combine(start, time.min),
                    "$lt": datetime.combine(end + timedelta(days=1), time.min),
                },
            },
        )

    async def transaction_summary(self, company_id: str, start: date, end: date) -> list[dict]:
        """Count and tax totals grouped by ``type``, then by ``gstType`` within it."""
        pipeline = [
            {
                "$match": {
                    "companyId": company_id,
                    "date": {
                        "$gte": datetime.combine(start, time.min),
                        "$lt": datetime.combine(end + timedelta(days=1), time.min),
                    },
                }
            },
            {
                "$group": {
                    "_id": {"type": "$type", "gstType": "$gstType"},
                    "count": {"$sum": 1},
                    "totalTaxableValue": {"$sum": "$taxableValue"},
                    "totalIgst": {"$sum": "$igst"},
                    "totalCgst": {"$sum": "$cgst"},
                    "totalSgst": {"$sum": "$sgst"},
                    "totalCess": {"$sum": "$cess"},
                }
            },
            {
                "$group": {
                    "_id": "$_id.type",
                    "details": {
                        "$push": {
                            "gstType": "$_id.gstType",
                            "count": "$count",
                            "taxableValue": "$totalTaxableValue",
                            "igst": "$totalIgst",
                            "cgst": "$totalCgst",
                            "sgst": "$totalSgst",
                            "cess": "$totalCess",
                        }
                    },
                    "totalCount": {"$sum": "$count"},
                    "totalTaxableValue": {"$sum": "$totalTaxableValue"},
                }
            },
            {"$sort": {"_id": 1}},
        ]
        collection = settings.TRANSACTIONS_COLLECTION
        try:
            return await self.db[collection].aggregate(pipeline).to_list(length=None)
        except PyMongoError as exc:
            logger.error("Transaction summary for %s failed: %s", company_id, exc)
            raise StorageUnavailableError(f"Could not aggregate {collection}: {exc}") from exc

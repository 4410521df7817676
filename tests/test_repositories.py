"""Tests for the MongoDB repositories and connection helpers."""

from datetime import date, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId
from pymongo.errors import ServerSelectionTimeoutError

from app.core.db import database_name
from app.infrastructure.db.repositories import (
    ExplorerRepository,
    Gstr3bRepository,
    StorageUnavailableError,
)
from app.infrastructure.db.repositories.gstr3b_repository import id_candidates

HEX_ID = "65a1f0c2e4b0a1b2c3d4e5f6"


def _db(collection: MagicMock) -> MagicMock:
    db = MagicMock()
    db.__getitem__.return_value = collection
    return db


def _collection(docs=None, error=None) -> MagicMock:
    cursor = MagicMock()
    cursor.to_list = AsyncMock(return_value=docs or [], side_effect=error)
    cursor.limit.return_value = cursor
    coll = MagicMock()
    coll.find.return_value = cursor
    coll.aggregate.return_value = cursor
    coll.find_one = AsyncMock(return_value=(docs or [None])[0], side_effect=error)
    return coll


class TestHelpers:

    def test_database_name_from_uri(self):
        assert database_name("mongodb://localhost:27017/gstdb") == "gstdb"
        assert database_name("mongodb+srv://u:p@cluster.example.net/ledger?retryWrites=true") == "ledger"

    def test_database_name_fallback(self):
        assert database_name("mongodb://localhost:27017", "configured") == "configured"
        assert database_name("mongodb://localhost:27017") == "mongodb-explorer"

    def test_id_candidates(self):
        assert id_candidates("comp-001") == ["comp-001"]
        assert id_candidates(HEX_ID) == [HEX_ID, ObjectId(HEX_ID)]


class TestGstr3bRepository:

    def test_supply_filter_uses_period(self, event_loop):
        coll = _collection([{"_id": "s1"}])
        repo = Gstr3bRepository(_db(coll))
        docs = event_loop.run_until_complete(repo.find_supply_transactions("comp-001", 2025, 1))
        assert docs == [{"_id": "s1"}]
        coll.find.assert_called_once_with({"companyId": "comp-001", "period.year": 2025, "period.month": 1})

    def test_date_window_is_half_open_on_next_day(self, event_loop):
        coll = _collection()
        repo = Gstr3bRepository(_db(coll))
        event_loop.run_until_complete(repo.find_transactions("comp-001", date(2025, 1, 1), date(2025, 1, 31)))
        query = coll.find.call_args.args[0]
        assert query["date"] == {"$gte": datetime(2025, 1, 1), "$lt": datetime(2025, 2, 1)}

    def test_company_lookup_matches_object_id(self, event_loop):
        coll = _collection([{"_id": ObjectId(HEX_ID)}])
        repo = Gstr3bRepository(_db(coll))
        company = event_loop.run_until_complete(repo.find_company(HEX_ID))
        assert company == {"_id": ObjectId(HEX_ID)}
        coll.find_one.assert_awaited_once_with({"_id": {"$in": [HEX_ID, ObjectId(HEX_ID)]}})

    def test_driver_error_becomes_storage_unavailable(self, event_loop):
        coll = _collection(error=ServerSelectionTimeoutError("no servers"))
        repo = Gstr3bRepository(_db(coll))
        with pytest.raises(StorageUnavailableError):
            event_loop.run_until_complete(repo.find_itc_payments("comp-001", 2025, 1))

    def test_summary_pipeline_groups_by_type(self, event_loop):
        coll = _collection([{"_id": "inward"}, {"_id": "outward"}])
        repo = Gstr3bRepository(_db(coll))
        rows = event_loop.run_until_complete(
            repo.transaction_summary("comp-001", date(2025, 1, 1), date(2025, 1, 31))
        )
        assert [r["_id"] for r in rows] == ["inward", "outward"]
        pipeline = coll.aggregate.call_args.args[0]
        assert pipeline[1]["$group"]["_id"] == {"type": "$type", "gstType": "$gstType"}
        assert pipeline[2]["$group"]["_id"] == "$_id.type"
        assert pipeline[-1] == {"$sort": {"_id": 1}}


class TestExplorerRepository:

    def test_list_collections_sorted(self, event_loop):
        db = MagicMock()
        db.list_collection_names = AsyncMock(return_value=["transactions", "companies"])
        names = event_loop.run_until_complete(ExplorerRepository(db).list_collections())
        assert names == ["companies", "transactions"]

    def test_fields_of_empty_collection(self, event_loop):
        coll = _collection()
        assert event_loop.run_until_complete(ExplorerRepository(_db(coll)).get_fields("empty")) is None

    def test_fields_from_sample(self, event_loop):
        coll = _collection([{"_id": 1, "name": "x", "price": 2}])
        fields = event_loop.run_until_complete(ExplorerRepository(_db(coll)).get_fields("items"))
        assert fields == ["_id", "name", "price"]

    def test_query_projection_and_limit_cap(self, event_loop):
        coll = _collection([{"name": "x"}])
        repo = ExplorerRepository(_db(coll))
        event_loop.run_until_complete(repo.execute_query("items", ["name"], 50_000))
        coll.find.assert_called_once_with({}, {"name": 1})
        coll.find.return_value.limit.assert_called_once_with(1000)

    def test_query_default_limit(self, event_loop):
        coll = _collection()
        event_loop.run_until_complete(ExplorerRepository(_db(coll)).execute_query("items"))
        coll.find.assert_called_once_with({}, None)
        coll.find.return_value.limit.assert_called_once_with(5)

"""Shared test fixtures for the GST data explorer test suite."""

import asyncio
from datetime import datetime

import pytest


@pytest.fixture(scope="session")
def event_loop():
    """Use a single event loop for the entire test session."""
    loop = asyncio.new_event_loop()
    yield loop
    loop.close()


@pytest.fixture
def sample_company() -> dict:
    """Company document as stored in the companies collection."""
    return {
        "_id": "comp-001",
        "gstin": "36AABCU9603R1ZM",
        "legalName": "ABC Traders Pvt Ltd",
        "tradeName": "ABC Traders",
        "authorizedSignatory": {"name": "R. Sharma"},
        "arn": "AA3601250012345",
        "arnDate": datetime(2025, 2, 20),
    }


@pytest.fixture
def nested_supplies() -> list[dict]:
    """Supply documents in the nested layout for January 2025."""
    period = {"year": 2025, "month": 1}
    return [
        {
            "_id": "s1",
            "companyId": "comp-001",
            "period": period,
            "type": "OUTWARD",
            "subType": "TAXABLE",
            "isInterstate": True,
            "counterparty": {"isRegistered": False},
            "taxableValue": 1000,
            "tax": {"integrated": 180, "central": 0, "state": 0, "cess": 0},
        },
        {
            "_id": "s2",
            "companyId": "comp-001",
            "period": period,
            "type": "OUTWARD",
            "subType": "TAXABLE",
            "isInterstate": False,
            "isEcommerceOperator": True,
            "counterparty": {"isRegistered": True},
            "taxableValue": "2000.50",
            "tax": {"integrated": 0, "central": "180.045", "state": "180.045", "cess": 0},
        },
        {
            "_id": "s3",
            "companyId": "comp-001",
            "period": period,
            "type": "OUTWARD",
            "subType": "ZERO_RATED",
            "taxableValue": 500,
            "tax": {"integrated": 0, "cess": 10},
        },
        {
            "_id": "s4",
            "companyId": "comp-001",
            "period": period,
            "type": "INWARD",
            "subType": "RCM",
            "taxableValue": 300,
            "tax": {"integrated": 54},
            "itc": {"eligible": True, "category": "reverse_charge", "amount": {"integrated": 54}},
        },
        {
            "_id": "s5",
            "companyId": "comp-001",
            "period": period,
            "type": "INWARD",
            "subType": "EXEMPT",
            "isInterstate": True,
            "taxableValue": 250,
        },
    ]


@pytest.fixture
def nested_payments() -> list[dict]:
    """Payment documents from the separate ITC-payments collection."""
    return [
        {
            "_id": "p1",
            "companyId": "comp-001",
            "period": {"year": 2025, "month": 1},
            "payment": {
                "cash": {"integrated": 100, "central": 90, "state": 90},
                "itcUtilised": {"integrated": 80},
                "interest": {"central": 5, "state": 5},
                "lateFee": {"central": 25, "state": 25},
            },
        },
    ]


@pytest.fixture
def flat_transactions() -> list[dict]:
    """Rows from the single transactions collection in the flat layout."""
    return [
        {
            "_id": "f1",
            "companyId": "comp-001",
            "date": datetime(2025, 1, 10),
            "type": "outward",
            "gstType": "taxable",
            "supplyType": "inter",
            "taxableValue": 1000,
            "igst": 180,
        },
        {
            "_id": "f2",
            "companyId": "comp-001",
            "date": datetime(2025, 1, 12),
            "type": "inward",
            "gstType": "taxable",
            "reverseCharge": True,
            "supplyType": "intra",
            "taxableValue": 400,
            "cgst": 36,
            "sgst": 36,
            "itc": {"eligible": True, "cgst": 36, "sgst": 36},
        },
        {
            "_id": "f3",
            "companyId": "comp-001",
            "date": datetime(2025, 1, 31),
            "type": "payment",
            "cash": {"igst": 100},
            "itcUtilised": {"cgst": 36, "sgst": 36},
            "lateFee": {"cgst": 50, "sgst": 50, "igst": 999},
        },
    ]

# app/domain/services/gst_calculator.py
"""
Flat-rate GST surcharge for ad-hoc query results.

Used by the explorer endpoints: pick a numeric field and a percentage
(typically 5, 12, 18 or 28) and every record gets "GST Amount" and
"Total Amount" columns.
"""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Any

from app.domain.models.gstr3b import round_money

logger = logging.getLogger("gst_calculator")

GST_AMOUNT_KEY = "GST Amount"
GST_PERCENTAGE_KEY = "GST Percentage"
TOTAL_AMOUNT_KEY = "Total Amount"

ZERO = Decimal("0")


def to_decimal(value: Any) -> Decimal | None:
    """Parse a numeric field value; None when it is not a finite number."""
    if isinstance(value, bool) or value is None:
        return None
    try:
        parsed = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    return parsed if parsed.is_finite() else None


def calculate_gst(value: Any, percentage: Any) -> Decimal:
    """GST on ``value`` at ``percentage`` percent, rounded to 2 places. 0 for non-numeric input."""
    amount = to_decimal(value)
    rate = to_decimal(percentage)
    if amount is None or rate is None:
        return round_money(ZERO)
    return round_money(amount * rate / Decimal(100))


def with_gst(record: dict, field: str, percentage: Any) -> dict:
    """Copy of ``record`` with the GST percentage, amount and total added."""
    base = to_decimal(record.get(field)) or ZERO
    gst_amount = calculate_gst(base, percentage)
    return {
        **record,
        GST_PERCENTAGE_KEY: percentage,
        GST_AMOUNT_KEY: gst_amount,
        TOTAL_AMOUNT_KEY: round_money(base + gst_amount),
    }


def apply_gst(records: list[dict], field: str | None, percentage: Any) -> list[dict]:
    """
    Add "GST Amount" and "Total Amount" to every record.

    Records whose field is missing or non-numeric get 0.00 for both.
    The input is returned unchanged when no field or percentage is given.
    """
    if not records or not field or not percentage:
        return records

    result = []
    for record in records:
        updated = with_gst(record, field, percentage)
        updated.pop(GST_PERCENTAGE_KEY)
        result.append(updated)

    logger.debug("Applied %s%% GST on field %s to %d records", percentage, field, len(result))
    return result

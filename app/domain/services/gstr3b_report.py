# app/domain/services/gstr3b_report.py
"""
GSTR-3B report assembly.

Fetches a company's transactions and payments for one month, normalizes
them, and folds them into the nested section structure of the return:

    3.1   outward and inward supplies
    3.1.1 supplies through e-commerce operators (section 9(5))
    3.2   inter-state supplies to unregistered / composition / UIN holders
    4     ITC eligible, reversed and net
    5     exempt, nil-rated and non-GST inward supplies
    5.1   interest and late fee
    6     payment of tax

The report is a derived view; nothing is written back to storage.
"""

from __future__ import annotations

import asyncio
import logging
from calendar import monthrange
from collections.abc import Iterable, Mapping
from datetime import date
from typing import Any

from app.config.settings import settings
from app.domain.models.gstr3b import (
    Gstr3bReport,
    ReportHeader,
    ReportPeriod,
    Section4,
    Section5,
    Section6,
    Section31,
    Section32,
    Section51,
    Section311,
)
from app.domain.models.transaction import Transaction
from app.domain.services.gstr3b_aggregators import (
    aggregate_ecommerce_operator,
    aggregate_exempt_nil_non_gst,
    aggregate_interest,
    aggregate_interstate_composition,
    aggregate_interstate_uin,
    aggregate_interstate_unregistered,
    aggregate_inward_reverse_charge,
    aggregate_itc,
    aggregate_late_fee,
    aggregate_non_gst_outward,
    aggregate_outward_nil_exempt,
    aggregate_outward_taxable,
    aggregate_outward_zero_rated,
    aggregate_tax_payment,
)
from app.domain.services.transaction_adapter import (
    LATE_FEE_HEADS,
    SchemaVariant,
    normalize_payments,
    normalize_transactions,
    parse_variant,
)

logger = logging.getLogger("gstr3b_report")

MIN_YEAR = 2000
MAX_YEAR = 2100


class InvalidPeriodError(Exception):
    """Year or month outside the accepted range."""


class CompanyNotFoundError(Exception):
    """No company document matches the requested id."""


# ---------------------------------------------------------------------------
# Period helpers
# ---------------------------------------------------------------------------

def validate_period(year: int, month: int) -> None:
    if not isinstance(year, int) or not MIN_YEAR <= year <= MAX_YEAR:
        raise InvalidPeriodError(f"Invalid year {year!r}: expected {MIN_YEAR}-{MAX_YEAR}")
    if not isinstance(month, int) or not 1 <= month <= 12:
        raise InvalidPeriodError(f"Invalid month {month!r}: expected 1-12")


def period_window(year: int, month: int) -> tuple[date, date]:
    """First and last day of the month, both inclusive."""
    validate_period(year, month)
    return date(year, month, 1), date(year, month, monthrange(year, month)[1])


# ---------------------------------------------------------------------------
# Pure assembly
# ---------------------------------------------------------------------------

def _signatory_name(value: Any) -> str | None:
    if isinstance(value, Mapping):
        value = value.get("name")
    return str(value) if value else None


def build_header(company_id: str, company: Mapping, year: int, month: int) -> ReportHeader:
    arn_date = company.get("arnDate")
    if isinstance(arn_date, date):
        arn_date = arn_date.strftime("%d/%m/%Y")
    return ReportHeader(
        company_id=company_id,
        gstin=company.get("gstin"),
        legal_name=company.get("legalName"),
        trade_name=company.get("tradeName"),
        authorized_signatory=_signatory_name(company.get("authorizedSignatory")),
        period=ReportPeriod(year=year, month=month),
        arn=company.get("arn"),
        arn_date=arn_date,
    )


def build_report(
    header: ReportHeader,
    transactions: Iterable[Transaction],
    variant: SchemaVariant = SchemaVariant.NESTED,
) -> Gstr3bReport:
    """Run every section aggregator over the same canonical transaction list."""
    txs = list(transactions)
    late_fee_heads = LATE_FEE_HEADS[variant]

    return Gstr3bReport(
        header=header,
        section3_1=Section31(
            outward_taxable=aggregate_outward_taxable(txs),
            outward_zero=aggregate_outward_zero_rated(txs),
            outward_nil_exempt=aggregate_outward_nil_exempt(txs),
            inward_reverse_charge=aggregate_inward_reverse_charge(txs),
            non_gst_outward=aggregate_non_gst_outward(txs),
        ),
        section3_1_1=Section311(ecommerce_operator=aggregate_ecommerce_operator(txs)),
        section3_2=Section32(
            unregistered=aggregate_interstate_unregistered(txs),
            composition=aggregate_interstate_composition(txs),
            uin=aggregate_interstate_uin(txs),
        ),
        section4=Section4(itc=aggregate_itc(txs)),
        section5=Section5(exempt_nil_non_gst=aggregate_exempt_nil_non_gst(txs)),
        section5_1=Section51(
            interest=aggregate_interest(txs),
            late_fee=aggregate_late_fee(txs, late_fee_heads),
        ),
        section6=Section6(payment=aggregate_tax_payment(txs, late_fee_heads)),
    )


# ---------------------------------------------------------------------------
# Storage-backed assembly
# ---------------------------------------------------------------------------

async def fetch_transactions(
    repo: Any,
    company_id: str,
    year: int,
    month: int,
    variant: SchemaVariant,
) -> list[Transaction]:
    """Load and normalize every record that feeds the report."""
    if variant == SchemaVariant.NESTED:
        supply_raw, payments_raw = await asyncio.gather(
            repo.find_supply_transactions(company_id, year, month),
            repo.find_itc_payments(company_id, year, month),
        )
        return normalize_transactions(supply_raw, variant) + normalize_payments(payments_raw, variant)

    start, end = period_window(year, month)
    raw = await repo.find_transactions(company_id, start, end)
    return normalize_transactions(raw, variant)


async def assemble_report(
    company_id: str,
    year: int,
    month: int,
    repo: Any,
    variant: SchemaVariant | str | None = None,
) -> Gstr3bReport:
    """
    Build the GSTR-3B report for ``company_id`` and the given month.

    Raises:
        InvalidPeriodError: before any storage read, for an out-of-range period.
        CompanyNotFoundError: when the company id does not resolve.
        StorageUnavailableError: propagated unchanged from the repository.
    """
    validate_period(year, month)
    variant = parse_variant(variant or settings.GSTR3B_SCHEMA_VARIANT)

    company, transactions = await asyncio.gather(
        repo.find_company(company_id),
        fetch_transactions(repo, company_id, year, month, variant),
    )
    if company is None:
        raise CompanyNotFoundError(f"Company with ID {company_id} not found")

    header = build_header(company_id, company, year, month)
    report = build_report(header, transactions, variant)

    logger.info(
        "GSTR-3B assembled: company=%s period=%02d/%d variant=%s records=%d",
        company_id, month, year, variant.value, len(transactions),
    )
    return report


async def transaction_summary(company_id: str, year: int, month: int, repo: Any) -> dict:
    """Per-type / per-GST-type totals for the month, straight from storage."""
    start, end = period_window(year, month)
    summary = await repo.transaction_summary(company_id, start, end)
    return {"period": {"month": month, "year": year}, "summary": summary}

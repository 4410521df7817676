# app/domain/services/gstr3b_classifier.py
"""
Predicates that route a canonical transaction to GSTR-3B buckets.

Within one section the predicates are mutually exclusive; the same
transaction may still satisfy predicates from different sections.
"""

from __future__ import annotations

from typing import Callable

from app.domain.models.transaction import (
    CounterpartyKind,
    SupplyCategory,
    Transaction,
    TransactionType,
)

Predicate = Callable[[Transaction], bool]


def _outward(tx: Transaction, category: SupplyCategory) -> bool:
    return tx.type == TransactionType.OUTWARD and tx.category == category


# -- 3.1 Outward and inward supplies ----------------------------------------

def is_outward_taxable(tx: Transaction) -> bool:
    return _outward(tx, SupplyCategory.TAXABLE)


def is_outward_zero_rated(tx: Transaction) -> bool:
    return _outward(tx, SupplyCategory.ZERO_RATED)


def is_outward_nil_exempt(tx: Transaction) -> bool:
    return tx.type == TransactionType.OUTWARD and tx.category in (
        SupplyCategory.EXEMPT,
        SupplyCategory.NIL_RATED,
    )


def is_outward_non_gst(tx: Transaction) -> bool:
    return _outward(tx, SupplyCategory.NON_GST)


def is_inward_reverse_charge(tx: Transaction) -> bool:
    return tx.type == TransactionType.INWARD and tx.category == SupplyCategory.RCM


# -- 3.1.1 Section 9(5) supplies --------------------------------------------

def is_ecommerce_supply(tx: Transaction) -> bool:
    return is_outward_taxable(tx) and tx.is_ecommerce_operator


# -- 3.2 Inter-state supplies -----------------------------------------------

def _interstate_to(tx: Transaction, kind: CounterpartyKind) -> bool:
    return is_outward_taxable(tx) and tx.is_interstate and tx.counterparty == kind


def is_interstate_unregistered(tx: Transaction) -> bool:
    return _interstate_to(tx, CounterpartyKind.UNREGISTERED)


def is_interstate_composition(tx: Transaction) -> bool:
    return _interstate_to(tx, CounterpartyKind.COMPOSITION)


def is_interstate_uin(tx: Transaction) -> bool:
    return _interstate_to(tx, CounterpartyKind.UIN)


# -- 4 Input tax credit ------------------------------------------------------

def is_itc_eligible(tx: Transaction) -> bool:
    return tx.itc is not None and tx.itc.eligible


def is_itc_reversed(tx: Transaction) -> bool:
    return tx.itc is not None and tx.itc.reversed


# -- 5 Exempt, nil-rated and non-GST inward supplies -------------------------

INWARD_EXEMPT_CATEGORIES = (
    SupplyCategory.COMPOSITION,
    SupplyCategory.EXEMPT,
    SupplyCategory.NIL_RATED,
    SupplyCategory.NON_GST,
)


def is_inward_exempt_nil_non_gst(tx: Transaction) -> bool:
    return tx.type == TransactionType.INWARD and tx.category in INWARD_EXEMPT_CATEGORIES


# -- 5.1 / 6 Payments --------------------------------------------------------

def is_payment(tx: Transaction) -> bool:
    return tx.type == TransactionType.PAYMENT and tx.payment is not None


PREDICATES: dict[str, Predicate] = {
    "outward_taxable": is_outward_taxable,
    "outward_zero": is_outward_zero_rated,
    "outward_nil_exempt": is_outward_nil_exempt,
    "non_gst_outward": is_outward_non_gst,
    "inward_reverse_charge": is_inward_reverse_charge,
    "ecommerce_operator": is_ecommerce_supply,
    "interstate_unregistered": is_interstate_unregistered,
    "interstate_composition": is_interstate_composition,
    "interstate_uin": is_interstate_uin,
    "itc_eligible": is_itc_eligible,
    "itc_reversed": is_itc_reversed,
    "inward_exempt_nil_non_gst": is_inward_exempt_nil_non_gst,
    "payment": is_payment,
}


def classify(tx: Transaction, category: str) -> bool:
    """Return True when ``tx`` belongs to the named category."""
    try:
        predicate = PREDICATES[category]
    except KeyError:
        raise ValueError(f"Unknown GSTR-3B category: {category}") from None
    return predicate(tx)

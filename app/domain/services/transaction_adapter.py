# app/domain/services/transaction_adapter.py
"""
Normalize stored transaction documents into canonical ``Transaction`` records.

Two storage layouts are supported:

``nested``
    ``type``/``subType`` in upper case, ``isInterstate`` flag, tax heads under
    ``tax.{integrated,central,state,cess}``, five ITC categories, payments kept
    in a separate collection with a ``payment`` sub-object.

``flat``
    ``type``/``gstType`` in lower case, ``reverseCharge`` flag, ``supplyType``
    of ``inter``/``intra``, flat ``igst/cgst/sgst/cess`` fields, a single ITC
    bucket, and payments stored as ``type="payment"`` rows with top-level
    ``cash``/``itcUtilised``/``interest``/``lateFee`` objects.

Absent numbers become zero and absent flags become False here, once, so the
aggregators never need to guard against partial documents.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

from app.domain.models.transaction import (
    ALL_HEADS,
    ZERO,
    CounterpartyKind,
    ItcCategory,
    ItcDetail,
    ItcReversalCategory,
    PaymentDetail,
    SupplyCategory,
    TaxAmounts,
    TaxHead,
    Transaction,
    TransactionType,
)

logger = logging.getLogger("transaction_adapter")


class MalformedTransactionError(Exception):
    """A stored record could not be turned into a canonical transaction."""


class SchemaVariant(str, Enum):
    NESTED = "nested"
    FLAT = "flat"


HEAD_KEYS: dict[SchemaVariant, dict[TaxHead, str]] = {
    SchemaVariant.NESTED: {
        TaxHead.INTEGRATED: "integrated",
        TaxHead.CENTRAL: "central",
        TaxHead.STATE: "state",
        TaxHead.CESS: "cess",
    },
    SchemaVariant.FLAT: {
        TaxHead.INTEGRATED: "igst",
        TaxHead.CENTRAL: "cgst",
        TaxHead.STATE: "sgst",
        TaxHead.CESS: "cess",
    },
}

# Late fee is levied only under the central and state acts in the flat layout.
LATE_FEE_HEADS: dict[SchemaVariant, tuple[TaxHead, ...]] = {
    SchemaVariant.NESTED: ALL_HEADS,
    SchemaVariant.FLAT: (TaxHead.CENTRAL, TaxHead.STATE),
}

_ITC_CATEGORY_ALIASES: dict[str, ItcCategory] = {
    "import_goods": ItcCategory.IMPORT_GOODS,
    "impg": ItcCategory.IMPORT_GOODS,
    "import_services": ItcCategory.IMPORT_SERVICES,
    "imps": ItcCategory.IMPORT_SERVICES,
    "reverse_charge": ItcCategory.REVERSE_CHARGE,
    "isrc": ItcCategory.REVERSE_CHARGE,
    "isd": ItcCategory.ISD,
    "others": ItcCategory.OTHERS,
    "oth": ItcCategory.OTHERS,
}

_REVERSAL_CATEGORY_ALIASES: dict[str, ItcReversalCategory] = {
    "rules_38_42_43": ItcReversalCategory.RULES_38_42_43,
    "rul": ItcReversalCategory.RULES_38_42_43,
    "others": ItcReversalCategory.OTHERS,
    "oth": ItcReversalCategory.OTHERS,
}

_INTERSTATE_SUPPLY_TYPES = {"inter", "interstate", "inter_state", "inter-state"}


def parse_variant(value: str | SchemaVariant) -> SchemaVariant:
    if isinstance(value, SchemaVariant):
        return value
    try:
        return SchemaVariant(str(value).strip().lower())
    except ValueError:
        raise ValueError(f"Unknown transaction schema variant: {value!r}") from None


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------

def _dec(value: Any, field_name: str) -> Decimal:
    """Missing → 0; anything that is not a number is a malformed record."""
    if value is None:
        return ZERO
    if isinstance(value, bool):
        raise MalformedTransactionError(f"{field_name} is a boolean, expected a number")
    try:
        parsed = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise MalformedTransactionError(f"{field_name}={value!r} is not numeric") from None
    if not parsed.is_finite():
        raise MalformedTransactionError(f"{field_name}={value!r} is not a finite number")
    return parsed


def _flag(value: Any) -> bool:
    return value is True


def _mapping(value: Any) -> Mapping:
    return value if isinstance(value, Mapping) else {}


def _amounts(raw: Any, keys: dict[TaxHead, str], field_name: str) -> TaxAmounts:
    src = _mapping(raw)
    return TaxAmounts(**{
        head.value: _dec(src.get(key), f"{field_name}.{key}")
        for head, key in keys.items()
    })


def _enum_key(value: Any) -> str:
    return str(value).strip().upper().replace("-", "_").replace(" ", "_")


def _transaction_type(value: Any) -> TransactionType:
    if value is None:
        return TransactionType.UNKNOWN
    try:
        return TransactionType(_enum_key(value))
    except ValueError:
        return TransactionType.UNKNOWN


def _supply_category(value: Any) -> SupplyCategory:
    if value is None:
        return SupplyCategory.UNKNOWN
    key = _enum_key(value)
    if key == "ZERO":
        key = "ZERO_RATED"
    elif key == "NIL":
        key = "NIL_RATED"
    try:
        return SupplyCategory(key)
    except ValueError:
        return SupplyCategory.UNKNOWN


def _itc_category(value: Any) -> ItcCategory:
    if value is None or value == "":
        return ItcCategory.OTHERS
    category = _ITC_CATEGORY_ALIASES.get(str(value).strip().lower())
    if category is None:
        raise MalformedTransactionError(f"Unknown ITC category {value!r}")
    return category


def _reversal_category(value: Any) -> ItcReversalCategory:
    if value is None or value == "":
        return ItcReversalCategory.OTHERS
    category = _REVERSAL_CATEGORY_ALIASES.get(str(value).strip().lower())
    if category is None:
        raise MalformedTransactionError(f"Unknown ITC reversal category {value!r}")
    return category


def _counterparty(raw: Any, source_id: str | None) -> CounterpartyKind:
    """
    Resolve the trading partner's registration status.

    Precedence when more than one flag is set: UIN, composition, registered.
    """
    cp = _mapping(raw)
    is_uin = _flag(cp.get("isUIN"))
    is_composition = _flag(cp.get("isComposition"))
    is_registered = _flag(cp.get("isRegistered"))

    if is_uin + is_composition + is_registered > 1:
        logger.warning(
            "Transaction %s has conflicting counterparty flags %s; resolving by precedence",
            source_id, dict(cp),
        )
    if is_uin:
        return CounterpartyKind.UIN
    if is_composition:
        return CounterpartyKind.COMPOSITION
    if is_registered:
        return CounterpartyKind.REGISTERED
    return CounterpartyKind.UNREGISTERED


def _payment(raw: Mapping, variant: SchemaVariant) -> PaymentDetail:
    keys = HEAD_KEYS[variant]
    late_fee_keys = {head: keys[head] for head in LATE_FEE_HEADS[variant]}
    return PaymentDetail(
        cash=_amounts(raw.get("cash"), keys, "cash"),
        itc_utilised=_amounts(raw.get("itcUtilised"), keys, "itcUtilised"),
        interest=_amounts(raw.get("interest"), keys, "interest"),
        late_fee=_amounts(raw.get("lateFee"), late_fee_keys, "lateFee"),
    )


# ---------------------------------------------------------------------------
# Per-variant normalizers
# ---------------------------------------------------------------------------

def _normalize_nested(raw: Mapping, source_id: str | None) -> Transaction:
    keys = HEAD_KEYS[SchemaVariant.NESTED]
    tx_type = _transaction_type(raw.get("type"))

    itc = None
    raw_itc = raw.get("itc")
    if isinstance(raw_itc, Mapping):
        itc = ItcDetail(
            eligible=_flag(raw_itc.get("eligible")),
            reversed=_flag(raw_itc.get("reversed")),
            category=_itc_category(raw_itc.get("category")),
            reversal_category=_reversal_category(raw_itc.get("reversalCategory")),
            amount=_amounts(raw_itc.get("amount"), keys, "itc.amount"),
        )

    payment = None
    if tx_type == TransactionType.PAYMENT:
        payment = _payment(_mapping(raw.get("payment") or raw.get("paymentDetails")), SchemaVariant.NESTED)

    return Transaction(
        company_id=str(raw.get("companyId") or ""),
        source_id=source_id,
        type=tx_type,
        category=_supply_category(raw.get("subType")),
        is_interstate=_flag(raw.get("isInterstate")),
        is_ecommerce_operator=_flag(raw.get("isEcommerceOperator")),
        counterparty=_counterparty(raw.get("counterparty"), source_id),
        taxable_value=_dec(raw.get("taxableValue"), "taxableValue"),
        tax=_amounts(raw.get("tax"), keys, "tax"),
        itc=itc,
        payment=payment,
    )


def _normalize_flat(raw: Mapping, source_id: str | None) -> Transaction:
    keys = HEAD_KEYS[SchemaVariant.FLAT]
    tx_type = _transaction_type(raw.get("type"))
    category = _supply_category(raw.get("gstType"))
    if tx_type == TransactionType.INWARD and _flag(raw.get("reverseCharge")):
        category = SupplyCategory.RCM

    supply_type = str(raw.get("supplyType") or "").strip().lower()

    itc = None
    raw_itc = raw.get("itc")
    if isinstance(raw_itc, Mapping):
        # Single ITC bucket in this layout
        itc = ItcDetail(
            eligible=_flag(raw_itc.get("eligible")),
            reversed=_flag(raw_itc.get("reversed")),
            amount=_amounts(raw_itc, keys, "itc"),
        )

    payment = _payment(raw, SchemaVariant.FLAT) if tx_type == TransactionType.PAYMENT else None

    return Transaction(
        company_id=str(raw.get("companyId") or ""),
        source_id=source_id,
        type=tx_type,
        category=category,
        is_interstate=supply_type in _INTERSTATE_SUPPLY_TYPES,
        is_ecommerce_operator=_flag(raw.get("isEcommerceOperator")),
        counterparty=_counterparty(raw.get("counterparty"), source_id),
        taxable_value=_dec(raw.get("taxableValue"), "taxableValue"),
        tax=_amounts(raw, keys, "tax"),
        itc=itc,
        payment=payment,
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def normalize_transaction(raw: Any, variant: SchemaVariant = SchemaVariant.NESTED) -> Transaction:
    """Normalize one stored document. Raises ``MalformedTransactionError``."""
    if not isinstance(raw, Mapping):
        raise MalformedTransactionError(f"Expected a document, got {type(raw).__name__}")
    source_id = str(raw["_id"]) if raw.get("_id") is not None else None
    if variant == SchemaVariant.FLAT:
        return _normalize_flat(raw, source_id)
    return _normalize_nested(raw, source_id)


def normalize_payment(raw: Any, variant: SchemaVariant = SchemaVariant.NESTED) -> Transaction:
    """Normalize a record from the separate ITC-payments collection."""
    if not isinstance(raw, Mapping):
        raise MalformedTransactionError(f"Expected a document, got {type(raw).__name__}")
    source_id = str(raw["_id"]) if raw.get("_id") is not None else None
    return Transaction(
        company_id=str(raw.get("companyId") or ""),
        source_id=source_id,
        type=TransactionType.PAYMENT,
        payment=_payment(_mapping(raw.get("payment")), variant),
    )


def _normalize_all(raws: Iterable[Any], variant: SchemaVariant, normalizer) -> list[Transaction]:
    out: list[Transaction] = []
    skipped = 0
    for raw in raws:
        try:
            out.append(normalizer(raw, variant))
        except MalformedTransactionError as exc:
            skipped += 1
            doc_id = raw.get("_id") if isinstance(raw, Mapping) else None
            logger.warning("Skipping malformed record %s: %s", doc_id, exc)
    if skipped:
        logger.info("Normalized %d records, skipped %d malformed", len(out), skipped)
    return out


def normalize_transactions(raws: Iterable[Any], variant: SchemaVariant = SchemaVariant.NESTED) -> list[Transaction]:
    return _normalize_all(raws, variant, normalize_transaction)


def normalize_payments(raws: Iterable[Any], variant: SchemaVariant = SchemaVariant.NESTED) -> list[Transaction]:
    return _normalize_all(raws, variant, normalize_payment)

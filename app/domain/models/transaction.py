"""
Canonical transaction record consumed by the GSTR-3B engine.

Every source document, whichever schema variant it was stored in, is
normalized into one of these before any aggregation happens. Numeric
fields are always present (zero when the source omitted them) and flags
are always booleans.
"""

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

ZERO = Decimal("0")


class TaxHead(str, Enum):
    INTEGRATED = "integrated"
    CENTRAL = "central"
    STATE = "state"
    CESS = "cess"


ALL_HEADS: tuple[TaxHead, ...] = (
    TaxHead.INTEGRATED,
    TaxHead.CENTRAL,
    TaxHead.STATE,
    TaxHead.CESS,
)


class TransactionType(str, Enum):
    OUTWARD = "OUTWARD"
    INWARD = "INWARD"
    PAYMENT = "PAYMENT"
    UNKNOWN = "UNKNOWN"


class SupplyCategory(str, Enum):
    TAXABLE = "TAXABLE"
    ZERO_RATED = "ZERO_RATED"
    EXEMPT = "EXEMPT"
    NIL_RATED = "NIL_RATED"
    NON_GST = "NON_GST"
    RCM = "RCM"
    COMPOSITION = "COMPOSITION"
    UNKNOWN = "UNKNOWN"


class CounterpartyKind(str, Enum):
    REGISTERED = "REGISTERED"
    UNREGISTERED = "UNREGISTERED"
    COMPOSITION = "COMPOSITION"
    UIN = "UIN"


class ItcCategory(str, Enum):
    IMPORT_GOODS = "import_goods"
    IMPORT_SERVICES = "import_services"
    REVERSE_CHARGE = "reverse_charge"
    ISD = "isd"
    OTHERS = "others"


class ItcReversalCategory(str, Enum):
    RULES_38_42_43 = "rules_38_42_43"
    OTHERS = "others"


class TaxAmounts(BaseModel):
    model_config = ConfigDict(frozen=True)

    integrated: Decimal = Field(default=ZERO)
    central: Decimal = Field(default=ZERO)
    state: Decimal = Field(default=ZERO)
    cess: Decimal = Field(default=ZERO)

    def get(self, head: TaxHead) -> Decimal:
        return getattr(self, head.value)


class ItcDetail(BaseModel):
    model_config = ConfigDict(frozen=True)

    eligible: bool = False
    reversed: bool = False
    category: ItcCategory = ItcCategory.OTHERS
    reversal_category: ItcReversalCategory = ItcReversalCategory.OTHERS
    amount: TaxAmounts = Field(default_factory=TaxAmounts)


class PaymentDetail(BaseModel):
    model_config = ConfigDict(frozen=True)

    cash: TaxAmounts = Field(default_factory=TaxAmounts)
    itc_utilised: TaxAmounts = Field(default_factory=TaxAmounts)
    interest: TaxAmounts = Field(default_factory=TaxAmounts)
    late_fee: TaxAmounts = Field(default_factory=TaxAmounts)


class Transaction(BaseModel):
    """One ledger entry: an outward supply, an inward supply or a payment."""

    model_config = ConfigDict(frozen=True)

    company_id: str = ""
    source_id: Optional[str] = None
    type: TransactionType = TransactionType.UNKNOWN
    category: SupplyCategory = SupplyCategory.UNKNOWN
    is_interstate: bool = False
    is_ecommerce_operator: bool = False
    counterparty: CounterpartyKind = CounterpartyKind.UNREGISTERED
    taxable_value: Decimal = Field(default=ZERO)
    tax: TaxAmounts = Field(default_factory=TaxAmounts)
    itc: Optional[ItcDetail] = None
    payment: Optional[PaymentDetail] = None

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from pydantic import BaseModel, Field

from app.domain.models.transaction import ALL_HEADS, TaxHead

ZERO = Decimal("0")
TWO_PLACES = Decimal("0.01")


def round_money(value: Decimal) -> Decimal:
    """Round to exactly two decimal places, half away from zero."""
    return Decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


_ZERO_2DP = round_money(ZERO)


def _money():
    return Field(default=_ZERO_2DP)


class HeadTotals(BaseModel):
    integrated: Decimal = _money()
    central: Decimal = _money()
    state: Decimal = _money()
    cess: Decimal = _money()

    def get(self, head: TaxHead) -> Decimal:
        return getattr(self, head.value)


class TaxTotals(HeadTotals):
    taxable_value: Decimal = _money()


class ZeroRatedTotals(BaseModel):
    """Zero-rated supplies never carry central/state tax."""
    taxable_value: Decimal = _money()
    integrated: Decimal = _money()
    cess: Decimal = _money()


class ValueTotals(BaseModel):
    taxable_value: Decimal = _money()


# ---------------------------------------------------------------------------
# Section 4: ITC
# ---------------------------------------------------------------------------

class EligibleItc(BaseModel):
    import_goods: HeadTotals = Field(default_factory=HeadTotals)
    import_services: HeadTotals = Field(default_factory=HeadTotals)
    reverse_charge: HeadTotals = Field(default_factory=HeadTotals)
    isd: HeadTotals = Field(default_factory=HeadTotals)
    others: HeadTotals = Field(default_factory=HeadTotals)

    def buckets(self) -> list[HeadTotals]:
        return [self.import_goods, self.import_services, self.reverse_charge, self.isd, self.others]

    def total(self, head: TaxHead) -> Decimal:
        return sum((b.get(head) for b in self.buckets()), _ZERO_2DP)


class ReversedItc(BaseModel):
    rules_38_42_43: HeadTotals = Field(default_factory=HeadTotals)
    others: HeadTotals = Field(default_factory=HeadTotals)

    def buckets(self) -> list[HeadTotals]:
        return [self.rules_38_42_43, self.others]

    def total(self, head: TaxHead) -> Decimal:
        return sum((b.get(head) for b in self.buckets()), _ZERO_2DP)


class ItcSummary(BaseModel):
    eligible: EligibleItc = Field(default_factory=EligibleItc)
    reversed: ReversedItc = Field(default_factory=ReversedItc)
    # eligible - reversed; may be negative
    net: HeadTotals = Field(default_factory=HeadTotals)


# ---------------------------------------------------------------------------
# Section 5: exempt, nil-rated and non-GST inward supplies
# ---------------------------------------------------------------------------

class InwardSplit(BaseModel):
    interstate: Decimal = _money()
    intrastate: Decimal = _money()


class ExemptNilNonGst(BaseModel):
    composition: InwardSplit = Field(default_factory=InwardSplit)
    exempt: InwardSplit = Field(default_factory=InwardSplit)
    nil_rated: InwardSplit = Field(default_factory=InwardSplit)
    non_gst: InwardSplit = Field(default_factory=InwardSplit)


# ---------------------------------------------------------------------------
# Section 6: payment of tax
# ---------------------------------------------------------------------------

class PaymentSplit(BaseModel):
    cash: Decimal = _money()
    itc: Decimal = _money()


class PaymentByHead(BaseModel):
    integrated: PaymentSplit = Field(default_factory=PaymentSplit)
    central: PaymentSplit = Field(default_factory=PaymentSplit)
    state: PaymentSplit = Field(default_factory=PaymentSplit)
    cess: PaymentSplit = Field(default_factory=PaymentSplit)

    def get(self, head: TaxHead) -> PaymentSplit:
        return getattr(self, head.value)


def zero_late_fee(heads: tuple[TaxHead, ...] = ALL_HEADS) -> dict[TaxHead, Decimal]:
    return {head: _ZERO_2DP for head in heads}


class TaxPayment(BaseModel):
    tax: PaymentByHead = Field(default_factory=PaymentByHead)
    interest: HeadTotals = Field(default_factory=HeadTotals)
    # Only the heads a late fee can be levied under are present.
    late_fee: dict[TaxHead, Decimal] = Field(default_factory=zero_late_fee)


# ---------------------------------------------------------------------------
# Report
# ---------------------------------------------------------------------------

class ReportPeriod(BaseModel):
    year: int
    month: int


class ReportHeader(BaseModel):
    company_id: str
    gstin: Optional[str] = None
    legal_name: Optional[str] = None
    trade_name: Optional[str] = None
    authorized_signatory: Optional[str] = None
    period: ReportPeriod
    # Filing reference, present once the return has been filed
    arn: Optional[str] = None
    arn_date: Optional[str] = None


class Section31(BaseModel):
    outward_taxable: TaxTotals = Field(default_factory=TaxTotals)
    outward_zero: ZeroRatedTotals = Field(default_factory=ZeroRatedTotals)
    outward_nil_exempt: ValueTotals = Field(default_factory=ValueTotals)
    inward_reverse_charge: TaxTotals = Field(default_factory=TaxTotals)
    non_gst_outward: ValueTotals = Field(default_factory=ValueTotals)


class Section311(BaseModel):
    ecommerce_operator: TaxTotals = Field(default_factory=TaxTotals)


class Section32(BaseModel):
    unregistered: TaxTotals = Field(default_factory=TaxTotals)
    composition: TaxTotals = Field(default_factory=TaxTotals)
    uin: TaxTotals = Field(default_factory=TaxTotals)


class Section4(BaseModel):
    itc: ItcSummary = Field(default_factory=ItcSummary)


class Section5(BaseModel):
    exempt_nil_non_gst: ExemptNilNonGst = Field(default_factory=ExemptNilNonGst)


class Section51(BaseModel):
    interest: HeadTotals = Field(default_factory=HeadTotals)
    late_fee: dict[TaxHead, Decimal] = Field(default_factory=zero_late_fee)


class Section6(BaseModel):
    payment: TaxPayment = Field(default_factory=TaxPayment)


class Gstr3bReport(BaseModel):
    header: ReportHeader
    section3_1: Section31 = Field(default_factory=Section31)
    section3_1_1: Section311 = Field(default_factory=Section311)
    section3_2: Section32 = Field(default_factory=Section32)
    section4: Section4 = Field(default_factory=Section4)
    section5: Section5 = Field(default_factory=Section5)
    section5_1: Section51 = Field(default_factory=Section51)
    section6: Section6 = Field(default_factory=Section6)


class LiabilitySummary(BaseModel):
    output_tax: HeadTotals = Field(default_factory=HeadTotals)
    net_itc: HeadTotals = Field(default_factory=HeadTotals)
    net_liability: HeadTotals = Field(default_factory=HeadTotals)
    total_liability: Decimal = _money()

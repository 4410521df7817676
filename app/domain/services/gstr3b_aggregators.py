# app/domain/services/gstr3b_aggregators.py
"""
One aggregator per GSTR-3B section.

Every aggregator takes the full list of canonical transactions, picks its
own subset through the classifier, accumulates with unrounded Decimals and
rounds to two places only when the section is complete. No I/O.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Callable, Iterable, Sequence

from app.domain.models.gstr3b import (
    EligibleItc,
    ExemptNilNonGst,
    HeadTotals,
    InwardSplit,
    ItcSummary,
    PaymentByHead,
    PaymentSplit,
    ReversedItc,
    TaxPayment,
    TaxTotals,
    ValueTotals,
    ZeroRatedTotals,
    round_money,
)
from app.domain.models.transaction import (
    ALL_HEADS,
    ZERO,
    ItcCategory,
    ItcReversalCategory,
    SupplyCategory,
    TaxAmounts,
    TaxHead,
    Transaction,
)
from app.domain.services.gstr3b_classifier import (
    Predicate,
    is_ecommerce_supply,
    is_interstate_composition,
    is_interstate_uin,
    is_interstate_unregistered,
    is_inward_exempt_nil_non_gst,
    is_inward_reverse_charge,
    is_itc_eligible,
    is_itc_reversed,
    is_outward_nil_exempt,
    is_outward_non_gst,
    is_outward_taxable,
    is_outward_zero_rated,
    is_payment,
)

HeadAccumulator = dict[TaxHead, Decimal]


# ---------------------------------------------------------------------------
# Accumulation helpers
# ---------------------------------------------------------------------------

def _zero_heads(heads: Iterable[TaxHead] = ALL_HEADS) -> HeadAccumulator:
    return {head: ZERO for head in heads}


def _add(acc: HeadAccumulator, amounts: TaxAmounts) -> None:
    for head in acc:
        acc[head] += amounts.get(head)


def _rounded(acc: HeadAccumulator) -> dict[TaxHead, Decimal]:
    return {head: round_money(value) for head, value in acc.items()}


def _head_totals(acc: HeadAccumulator) -> HeadTotals:
    return HeadTotals(**{head.value: value for head, value in _rounded(acc).items()})


def _tax_totals(transactions: Iterable[Transaction], predicate: Predicate) -> TaxTotals:
    taxable = ZERO
    acc = _zero_heads()
    for tx in transactions:
        if predicate(tx):
            taxable += tx.taxable_value
            _add(acc, tx.tax)
    return TaxTotals(
        taxable_value=round_money(taxable),
        **{head.value: value for head, value in _rounded(acc).items()},
    )


def _value_totals(transactions: Iterable[Transaction], predicate: Predicate) -> ValueTotals:
    taxable = sum((tx.taxable_value for tx in transactions if predicate(tx)), ZERO)
    return ValueTotals(taxable_value=round_money(taxable))


def _payments(transactions: Iterable[Transaction]) -> list[Transaction]:
    return [tx for tx in transactions if is_payment(tx)]


def _sum_payment_field(
    payments: Sequence[Transaction],
    pick: Callable[[Transaction], TaxAmounts],
    heads: Iterable[TaxHead] = ALL_HEADS,
) -> HeadAccumulator:
    acc = _zero_heads(heads)
    for tx in payments:
        _add(acc, pick(tx))
    return acc


# ---------------------------------------------------------------------------
# 3.1 Outward and inward supplies
# ---------------------------------------------------------------------------

def aggregate_outward_taxable(transactions: Sequence[Transaction]) -> TaxTotals:
    """(a) Outward taxable supplies other than zero rated, nil rated and exempted."""
    return _tax_totals(transactions, is_outward_taxable)


def aggregate_outward_zero_rated(transactions: Sequence[Transaction]) -> ZeroRatedTotals:
    """(b) Zero rated supplies: taxable value, integrated tax and cess only."""
    taxable = integrated = cess = ZERO
    for tx in transactions:
        if is_outward_zero_rated(tx):
            taxable += tx.taxable_value
            integrated += tx.tax.integrated
            cess += tx.tax.cess
    return ZeroRatedTotals(
        taxable_value=round_money(taxable),
        integrated=round_money(integrated),
        cess=round_money(cess),
    )


def aggregate_outward_nil_exempt(transactions: Sequence[Transaction]) -> ValueTotals:
    return _value_totals(transactions, is_outward_nil_exempt)


def aggregate_non_gst_outward(transactions: Sequence[Transaction]) -> ValueTotals:
    return _value_totals(transactions, is_outward_non_gst)


def aggregate_inward_reverse_charge(transactions: Sequence[Transaction]) -> TaxTotals:
    return _tax_totals(transactions, is_inward_reverse_charge)


# ---------------------------------------------------------------------------
# 3.1.1 / 3.2
# ---------------------------------------------------------------------------

def aggregate_ecommerce_operator(transactions: Sequence[Transaction]) -> TaxTotals:
    return _tax_totals(transactions, is_ecommerce_supply)


def aggregate_interstate_unregistered(transactions: Sequence[Transaction]) -> TaxTotals:
    return _tax_totals(transactions, is_interstate_unregistered)


def aggregate_interstate_composition(transactions: Sequence[Transaction]) -> TaxTotals:
    return _tax_totals(transactions, is_interstate_composition)


def aggregate_interstate_uin(transactions: Sequence[Transaction]) -> TaxTotals:
    return _tax_totals(transactions, is_interstate_uin)


# ---------------------------------------------------------------------------
# 4 ITC
# ---------------------------------------------------------------------------

def aggregate_itc(transactions: Sequence[Transaction]) -> ItcSummary:
    """
    Eligible ITC per category, reversed ITC per reversal category, and
    net = eligible - reversed per head.

    Net is taken from the unrounded sums and rounded once per head. It is not
    clamped.
    """
    eligible = {category: _zero_heads() for category in ItcCategory}
    reversed_ = {category: _zero_heads() for category in ItcReversalCategory}

    for tx in transactions:
        if is_itc_eligible(tx):
            _add(eligible[tx.itc.category], tx.itc.amount)
        if is_itc_reversed(tx):
            _add(reversed_[tx.itc.reversal_category], tx.itc.amount)

    eligible_itc = EligibleItc(**{c.value: _head_totals(acc) for c, acc in eligible.items()})
    reversed_itc = ReversedItc(**{c.value: _head_totals(acc) for c, acc in reversed_.items()})
    net = HeadTotals(**{
        head.value: round_money(
            sum((acc[head] for acc in eligible.values()), ZERO)
            - sum((acc[head] for acc in reversed_.values()), ZERO)
        )
        for head in ALL_HEADS
    })
    return ItcSummary(eligible=eligible_itc, reversed=reversed_itc, net=net)


# ---------------------------------------------------------------------------
# 5 Exempt, nil-rated and non-GST inward supplies
# ---------------------------------------------------------------------------

_EXEMPT_BUCKETS = {
    SupplyCategory.COMPOSITION: "composition",
    SupplyCategory.EXEMPT: "exempt",
    SupplyCategory.NIL_RATED: "nil_rated",
    SupplyCategory.NON_GST: "non_gst",
}


def aggregate_exempt_nil_non_gst(transactions: Sequence[Transaction]) -> ExemptNilNonGst:
    acc = {bucket: {"interstate": ZERO, "intrastate": ZERO} for bucket in _EXEMPT_BUCKETS.values()}
    for tx in transactions:
        if is_inward_exempt_nil_non_gst(tx):
            side = "interstate" if tx.is_interstate else "intrastate"
            acc[_EXEMPT_BUCKETS[tx.category]][side] += tx.taxable_value
    return ExemptNilNonGst(**{
        bucket: InwardSplit(
            interstate=round_money(split["interstate"]),
            intrastate=round_money(split["intrastate"]),
        )
        for bucket, split in acc.items()
    })


# ---------------------------------------------------------------------------
# 5.1 Interest and late fee / 6 Payment of tax
# ---------------------------------------------------------------------------

def aggregate_interest(transactions: Sequence[Transaction]) -> HeadTotals:
    acc = _sum_payment_field(_payments(transactions), lambda tx: tx.payment.interest)
    return _head_totals(acc)


def aggregate_late_fee(
    transactions: Sequence[Transaction],
    heads: tuple[TaxHead, ...] = ALL_HEADS,
) -> dict[TaxHead, Decimal]:
    """Late fee totals for exactly the heads given, no others."""
    acc = _sum_payment_field(_payments(transactions), lambda tx: tx.payment.late_fee, heads)
    return _rounded(acc)


def aggregate_tax_payment(
    transactions: Sequence[Transaction],
    late_fee_heads: tuple[TaxHead, ...] = ALL_HEADS,
) -> TaxPayment:
    payments = _payments(transactions)
    cash = _rounded(_sum_payment_field(payments, lambda tx: tx.payment.cash))
    itc = _rounded(_sum_payment_field(payments, lambda tx: tx.payment.itc_utilised))
    return TaxPayment(
        tax=PaymentByHead(**{
            head.value: PaymentSplit(cash=cash[head], itc=itc[head]) for head in ALL_HEADS
        }),
        interest=aggregate_interest(payments),
        late_fee=aggregate_late_fee(payments, late_fee_heads),
    )

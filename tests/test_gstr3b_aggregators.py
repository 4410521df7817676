"""Tests for the per-section GSTR-3B aggregators."""

from decimal import Decimal

import pytest

from app.domain.models.gstr3b import round_money
from app.domain.models.transaction import (
    ItcCategory,
    ItcDetail,
    ItcReversalCategory,
    SupplyCategory,
    TaxAmounts,
    TaxHead,
    Transaction,
    TransactionType,
)
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
from app.domain.services.transaction_adapter import normalize_payments, normalize_transactions

D = Decimal


def _outward(category=SupplyCategory.TAXABLE, **overrides) -> Transaction:
    defaults = {"type": TransactionType.OUTWARD, "category": category}
    defaults.update(overrides)
    return Transaction(**defaults)


def _itc(category=ItcCategory.OTHERS, integrated="0", eligible=True, reversed_=False,
         reversal_category=ItcReversalCategory.OTHERS) -> Transaction:
    return Transaction(
        type=TransactionType.INWARD,
        category=SupplyCategory.TAXABLE,
        itc=ItcDetail(
            eligible=eligible,
            reversed=reversed_,
            category=category,
            reversal_category=reversal_category,
            amount=TaxAmounts(integrated=D(integrated)),
        ),
    )


class TestEmptyInput:

    def test_every_section_is_zero(self):
        assert aggregate_outward_taxable([]).taxable_value == D("0.00")
        assert aggregate_outward_zero_rated([]).cess == D("0.00")
        assert aggregate_outward_nil_exempt([]).taxable_value == D("0.00")
        assert aggregate_non_gst_outward([]).taxable_value == D("0.00")
        assert aggregate_inward_reverse_charge([]).integrated == D("0.00")
        assert aggregate_itc([]).net.integrated == D("0.00")
        assert aggregate_interest([]).central == D("0.00")

    def test_zero_values_have_two_decimal_places(self):
        totals = aggregate_outward_taxable([])
        assert str(totals.taxable_value) == "0.00"
        assert str(totals.cess) == "0.00"


class TestOutwardSupplies:

    def test_single_outward_taxable(self):
        tx = _outward(taxable_value=D("1000"), tax=TaxAmounts(integrated=D("180")))
        totals = aggregate_outward_taxable([tx])
        assert totals.taxable_value == D("1000.00")
        assert totals.integrated == D("180.00")
        assert totals.central == D("0.00")
        assert totals.state == D("0.00")
        assert totals.cess == D("0.00")

    def test_zero_rated_keeps_only_integrated_and_cess(self):
        tx = _outward(
            SupplyCategory.ZERO_RATED,
            taxable_value=D("500"),
            tax=TaxAmounts(cess=D("10"), central=D("7")),
        )
        totals = aggregate_outward_zero_rated([tx])
        assert totals.taxable_value == D("500.00")
        assert totals.integrated == D("0.00")
        assert totals.cess == D("10.00")
        assert not hasattr(totals, "central")

    def test_missing_tax_contributes_value_only(self):
        tx = normalize_transactions([{"type": "OUTWARD", "subType": "TAXABLE", "taxableValue": 640}])[0]
        totals = aggregate_outward_taxable([tx])
        assert totals.taxable_value == D("640.00")
        for head in TaxHead:
            assert totals.get(head) == D("0.00")

    def test_rounding_happens_once_at_section_end(self):
        txs = [_outward(taxable_value=D("0.004"), tax=TaxAmounts(central=D("0.004"))) for _ in range(3)]
        totals = aggregate_outward_taxable(txs)
        # 0.012 rounds to 0.01; per-item rounding would give 0.00
        assert totals.taxable_value == D("0.01")
        assert totals.central == D("0.01")

    def test_half_up_rounding(self):
        totals = aggregate_outward_taxable([_outward(taxable_value=D("10.005"))])
        assert totals.taxable_value == D("10.01")

    def test_nil_exempt_and_non_gst(self):
        txs = [
            _outward(SupplyCategory.EXEMPT, taxable_value=D("100")),
            _outward(SupplyCategory.NIL_RATED, taxable_value=D("50")),
            _outward(SupplyCategory.NON_GST, taxable_value=D("25")),
        ]
        assert aggregate_outward_nil_exempt(txs).taxable_value == D("150.00")
        assert aggregate_non_gst_outward(txs).taxable_value == D("25.00")

    def test_no_double_counting_within_section(self):
        txs = [
            _outward(taxable_value=D("100")),
            _outward(SupplyCategory.ZERO_RATED, taxable_value=D("200")),
            _outward(SupplyCategory.EXEMPT, taxable_value=D("300")),
            _outward(SupplyCategory.NON_GST, taxable_value=D("400")),
        ]
        total = (
            aggregate_outward_taxable(txs).taxable_value
            + aggregate_outward_zero_rated(txs).taxable_value
            + aggregate_outward_nil_exempt(txs).taxable_value
            + aggregate_non_gst_outward(txs).taxable_value
        )
        assert total == D("1000.00")

    def test_inward_reverse_charge(self, nested_supplies):
        totals = aggregate_inward_reverse_charge(normalize_transactions(nested_supplies))
        assert totals.taxable_value == D("300.00")
        assert totals.integrated == D("54.00")


class TestSection311And32:

    def test_fixture_split(self, nested_supplies):
        txs = normalize_transactions(nested_supplies)
        assert aggregate_ecommerce_operator(txs).taxable_value == D("2000.50")
        assert aggregate_interstate_unregistered(txs).integrated == D("180.00")
        assert aggregate_interstate_composition(txs).taxable_value == D("0.00")
        assert aggregate_interstate_uin(txs).taxable_value == D("0.00")

    def test_outward_taxable_rounds_accumulated_central_tax(self, nested_supplies):
        totals = aggregate_outward_taxable(normalize_transactions(nested_supplies))
        assert totals.taxable_value == D("3000.50")
        assert totals.central == D("180.05")
        assert totals.state == D("180.05")


class TestItc:

    def test_net_is_eligible_minus_reversed(self):
        txs = [
            _itc(ItcCategory.IMPORT_GOODS, "50"),
            _itc(ItcCategory.OTHERS, "20"),
            _itc(eligible=False, reversed_=True, integrated="5"),
        ]
        itc = aggregate_itc(txs)
        assert itc.eligible.import_goods.integrated == D("50.00")
        assert itc.eligible.others.integrated == D("20.00")
        assert itc.reversed.others.integrated == D("5.00")
        assert itc.net.integrated == D("65.00")

    def test_unspecified_category_lands_in_others(self):
        tx = normalize_transactions([{"type": "INWARD", "itc": {"eligible": True, "amount": {"integrated": 20}}}])
        assert aggregate_itc(tx).eligible.others.integrated == D("20.00")

    def test_reversal_category_bucket(self):
        txs = [_itc(eligible=False, reversed_=True, integrated="12",
                    reversal_category=ItcReversalCategory.RULES_38_42_43)]
        itc = aggregate_itc(txs)
        assert itc.reversed.rules_38_42_43.integrated == D("12.00")
        assert itc.net.integrated == D("-12.00")

    def test_net_is_rounded_once_from_unrounded_sums(self):
        txs = [
            _itc(ItcCategory.IMPORT_GOODS, "0.005"),
            _itc(ItcCategory.OTHERS, "0.005"),
        ]
        itc = aggregate_itc(txs)
        assert itc.eligible.import_goods.integrated == D("0.01")
        assert itc.eligible.others.integrated == D("0.01")
        assert itc.net.integrated == D("0.01")

    def test_net_matches_fixture_for_every_head(self, nested_supplies):
        itc = aggregate_itc(normalize_transactions(nested_supplies))
        for head in TaxHead:
            assert itc.net.get(head) == itc.eligible.total(head) - itc.reversed.total(head)


class TestInwardExempt:

    def test_split_by_interstate_flag(self):
        txs = [
            Transaction(type=TransactionType.INWARD, category=SupplyCategory.EXEMPT,
                        is_interstate=True, taxable_value=D("250")),
            Transaction(type=TransactionType.INWARD, category=SupplyCategory.NIL_RATED,
                        taxable_value=D("75")),
            Transaction(type=TransactionType.INWARD, category=SupplyCategory.COMPOSITION,
                        taxable_value=D("40")),
        ]
        totals = aggregate_exempt_nil_non_gst(txs)
        assert totals.exempt.interstate == D("250.00")
        assert totals.exempt.intrastate == D("0.00")
        assert totals.nil_rated.intrastate == D("75.00")
        assert totals.composition.intrastate == D("40.00")
        assert totals.non_gst.interstate == D("0.00")

    def test_outward_exempt_is_ignored(self):
        totals = aggregate_exempt_nil_non_gst([_outward(SupplyCategory.EXEMPT, taxable_value=D("99"))])
        assert totals.exempt.intrastate == D("0.00")


class TestPayments:

    def test_tax_payment_split(self, nested_payments):
        txs = normalize_payments(nested_payments)
        payment = aggregate_tax_payment(txs)
        assert payment.tax.integrated.cash == D("100.00")
        assert payment.tax.integrated.itc == D("80.00")
        assert payment.tax.central.cash == D("90.00")
        assert payment.interest.state == D("5.00")
        assert payment.late_fee[TaxHead.CENTRAL] == D("25.00")

    def test_late_fee_has_only_requested_heads(self, nested_payments):
        txs = normalize_payments(nested_payments)
        late_fee = aggregate_late_fee(txs, (TaxHead.CENTRAL, TaxHead.STATE))
        assert set(late_fee) == {TaxHead.CENTRAL, TaxHead.STATE}

    def test_supplies_do_not_count_as_payments(self, nested_supplies):
        txs = normalize_transactions(nested_supplies)
        assert aggregate_tax_payment(txs).tax.integrated.cash == D("0.00")


class TestRounding:

    @pytest.mark.parametrize("raw", ["0", "0.005", "0.015", "-0.005", "180.045", "2000.499", "1e-9", "123456789.995"])
    def test_round_money_is_idempotent(self, raw):
        once = round_money(D(raw))
        assert round_money(once) == once

    def test_round_money_is_half_up(self):
        assert round_money(D("0.005")) == D("0.01")
        assert round_money(D("180.045")) == D("180.05")

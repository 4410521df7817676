"""Tests for the GSTR-3B category predicates."""

import pytest

from app.domain.models.transaction import (
    CounterpartyKind,
    ItcDetail,
    PaymentDetail,
    SupplyCategory,
    Transaction,
    TransactionType,
)
from app.domain.services.gstr3b_classifier import (
    PREDICATES,
    classify,
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

SECTION_3_1 = ("outward_taxable", "outward_zero", "outward_nil_exempt", "non_gst_outward", "inward_reverse_charge")
SECTION_3_2 = ("interstate_unregistered", "interstate_composition", "interstate_uin")


def _tx(**overrides) -> Transaction:
    defaults = {"type": TransactionType.OUTWARD, "category": SupplyCategory.TAXABLE}
    defaults.update(overrides)
    return Transaction(**defaults)


class TestSection31:

    def test_outward_taxable(self):
        assert is_outward_taxable(_tx())
        assert not is_outward_taxable(_tx(type=TransactionType.INWARD))

    def test_zero_rated(self):
        assert is_outward_zero_rated(_tx(category=SupplyCategory.ZERO_RATED))
        assert not is_outward_zero_rated(_tx())

    def test_nil_and_exempt_share_a_bucket(self):
        assert is_outward_nil_exempt(_tx(category=SupplyCategory.EXEMPT))
        assert is_outward_nil_exempt(_tx(category=SupplyCategory.NIL_RATED))
        assert not is_outward_nil_exempt(_tx(category=SupplyCategory.NON_GST))

    def test_non_gst(self):
        assert is_outward_non_gst(_tx(category=SupplyCategory.NON_GST))

    def test_reverse_charge_is_inward_only(self):
        assert is_inward_reverse_charge(_tx(type=TransactionType.INWARD, category=SupplyCategory.RCM))
        assert not is_inward_reverse_charge(_tx(category=SupplyCategory.RCM))

    @pytest.mark.parametrize("category", list(SupplyCategory))
    def test_section_is_mutually_exclusive(self, category):
        for tx_type in (TransactionType.OUTWARD, TransactionType.INWARD):
            tx = _tx(type=tx_type, category=category)
            assert sum(classify(tx, name) for name in SECTION_3_1) <= 1


class TestSection311And32:

    def test_ecommerce_requires_flag(self):
        assert is_ecommerce_supply(_tx(is_ecommerce_operator=True))
        assert not is_ecommerce_supply(_tx())
        assert not is_ecommerce_supply(_tx(category=SupplyCategory.EXEMPT, is_ecommerce_operator=True))

    def test_interstate_unregistered(self):
        assert is_interstate_unregistered(_tx(is_interstate=True))
        assert not is_interstate_unregistered(_tx(is_interstate=False))

    def test_interstate_composition_and_uin(self):
        assert is_interstate_composition(_tx(is_interstate=True, counterparty=CounterpartyKind.COMPOSITION))
        assert is_interstate_uin(_tx(is_interstate=True, counterparty=CounterpartyKind.UIN))

    def test_registered_counterparty_is_in_no_32_bucket(self):
        tx = _tx(is_interstate=True, counterparty=CounterpartyKind.REGISTERED)
        assert not any(classify(tx, name) for name in SECTION_3_2)

    @pytest.mark.parametrize("kind", list(CounterpartyKind))
    def test_32_buckets_are_mutually_exclusive(self, kind):
        tx = _tx(is_interstate=True, counterparty=kind)
        assert sum(classify(tx, name) for name in SECTION_3_2) <= 1


class TestItcAndPayments:

    def test_eligible_and_reversed_can_both_hold(self):
        tx = _tx(type=TransactionType.INWARD, itc=ItcDetail(eligible=True, reversed=True))
        assert is_itc_eligible(tx)
        assert is_itc_reversed(tx)

    def test_no_itc_block(self):
        assert not is_itc_eligible(_tx(type=TransactionType.INWARD))
        assert not is_itc_reversed(_tx(type=TransactionType.INWARD))

    def test_inward_exempt_includes_composition(self):
        assert is_inward_exempt_nil_non_gst(_tx(type=TransactionType.INWARD, category=SupplyCategory.COMPOSITION))
        assert not is_inward_exempt_nil_non_gst(_tx(category=SupplyCategory.EXEMPT))

    def test_payment_requires_detail(self):
        assert is_payment(_tx(type=TransactionType.PAYMENT, payment=PaymentDetail()))
        assert not is_payment(_tx(type=TransactionType.PAYMENT))


class TestClassify:

    def test_every_predicate_is_registered(self):
        assert len(PREDICATES) == 13

    def test_unknown_category_raises(self):
        with pytest.raises(ValueError):
            classify(_tx(), "outward_luxury")

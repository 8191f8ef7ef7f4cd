"""Unit tests for the pricing functions.

Pure arithmetic: no database rows are created here.
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from modules.orders import pricing
from modules.orders.exceptions import InvalidQuantity
from modules.vouchers.constants import VoucherType

pytestmark = pytest.mark.unit

POLICY = pricing.PricingPolicy(
    tax_rate=Decimal("0.10"),
    shipping_fee=Decimal("10.00"),
    free_shipping_threshold=Decimal("100.00"),
)


class TestMoney:
    def test_rounds_half_up_to_cents(self):
        assert pricing.money(Decimal("0.125")) == Decimal("0.13")
        assert pricing.money(Decimal("0.124")) == Decimal("0.12")

    def test_accepts_strings_and_ints(self):
        assert pricing.money("7.5") == Decimal("7.50")
        assert pricing.money(3) == Decimal("3.00")


class TestLineSubtotal:
    def test_price_times_quantity(self):
        assert pricing.line_subtotal(Decimal("19.99"), 3) == Decimal("59.97")

    @pytest.mark.parametrize("quantity", [0, -1])
    def test_rejects_non_positive_quantity(self, quantity):
        with pytest.raises(InvalidQuantity):
            pricing.line_subtotal(Decimal("10.00"), quantity)


class TestVoucherDiscount:
    def test_percentage(self):
        discount = pricing.voucher_discount(
            VoucherType.PERCENTAGE, Decimal("10"), Decimal("150.00")
        )
        assert discount == Decimal("15.00")

    def test_percentage_capped_by_max_discount(self):
        discount = pricing.voucher_discount(
            VoucherType.PERCENTAGE,
            Decimal("10"),
            Decimal("150.00"),
            max_discount=Decimal("10.00"),
        )
        assert discount == Decimal("10.00")

    def test_percentage_below_cap_is_not_raised(self):
        discount = pricing.voucher_discount(
            VoucherType.PERCENTAGE,
            Decimal("10"),
            Decimal("50.00"),
            max_discount=Decimal("10.00"),
        )
        assert discount == Decimal("5.00")

    def test_percentage_rounds_half_up(self):
        discount = pricing.voucher_discount(
            VoucherType.PERCENTAGE, Decimal("15"), Decimal("0.50")
        )
        assert discount == Decimal("0.08")

    def test_fixed_amount(self):
        discount = pricing.voucher_discount(
            VoucherType.FIXED_AMOUNT, Decimal("20.00"), Decimal("150.00")
        )
        assert discount == Decimal("20.00")

    def test_fixed_amount_never_exceeds_subtotal(self):
        discount = pricing.voucher_discount(
            VoucherType.FIXED_AMOUNT, Decimal("50.00"), Decimal("30.00")
        )
        assert discount == Decimal("30.00")

    def test_free_shipping_gives_no_merchandise_discount(self):
        discount = pricing.voucher_discount(
            VoucherType.FREE_SHIPPING, Decimal("1"), Decimal("80.00")
        )
        assert discount == Decimal("0.00")

    def test_unknown_type_rejected(self):
        with pytest.raises(ValueError):
            pricing.voucher_discount("BOGO", Decimal("1"), Decimal("10.00"))

    def test_percentage_above_100_stays_within_subtotal(self):
        discount = pricing.voucher_discount(
            VoucherType.PERCENTAGE, Decimal("150"), Decimal("80.00")
        )
        assert discount == Decimal("80.00")

    def test_negative_cap_never_yields_negative_discount(self):
        discount = pricing.voucher_discount(
            VoucherType.PERCENTAGE,
            Decimal("10"),
            Decimal("80.00"),
            max_discount=Decimal("-5.00"),
        )
        assert discount == Decimal("0.00")


class TestPriceOrder:
    def test_discount_capped_and_shipping_waived_above_threshold(self):
        breakdown = pricing.price_order(Decimal("150.00"), Decimal("10.00"), POLICY)
        assert breakdown.subtotal == Decimal("150.00")
        assert breakdown.discount == Decimal("10.00")
        assert breakdown.shipping == Decimal("0.00")
        assert breakdown.tax == Decimal("14.00")
        assert breakdown.total == Decimal("154.00")

    def test_flat_shipping_below_threshold(self):
        breakdown = pricing.price_order(Decimal("50.00"), Decimal("0.00"), POLICY)
        assert breakdown.shipping == Decimal("10.00")
        assert breakdown.tax == Decimal("5.00")
        assert breakdown.total == Decimal("65.00")

    def test_threshold_applies_after_discount(self):
        breakdown = pricing.price_order(Decimal("105.00"), Decimal("10.00"), POLICY)
        assert breakdown.shipping == Decimal("10.00")

    def test_threshold_is_inclusive(self):
        breakdown = pricing.price_order(Decimal("100.00"), Decimal("0.00"), POLICY)
        assert breakdown.shipping == Decimal("0.00")

    def test_free_shipping_flag_waives_fee(self):
        breakdown = pricing.price_order(
            Decimal("40.00"), Decimal("0.00"), POLICY, free_shipping=True
        )
        assert breakdown.shipping == Decimal("0.00")
        assert breakdown.total == Decimal("44.00")

    def test_total_equals_sum_of_components(self):
        breakdown = pricing.price_order(Decimal("33.33"), Decimal("3.33"), POLICY)
        assert breakdown.total == (
            breakdown.subtotal - breakdown.discount + breakdown.shipping + breakdown.tax
        )

    def test_full_discount_leaves_shipping_only(self):
        breakdown = pricing.price_order(Decimal("30.00"), Decimal("30.00"), POLICY)
        assert breakdown.tax == Decimal("0.00")
        assert breakdown.total == Decimal("10.00")


class TestAverage:
    def test_zero_count_is_zero(self):
        assert pricing.average(Decimal("0.00"), 0) == Decimal("0.00")

    def test_rounds_half_up(self):
        assert pricing.average(Decimal("10.00"), 3) == Decimal("3.33")
        assert pricing.average(Decimal("0.05"), 2) == Decimal("0.03")


def test_policy_reads_settings(settings):
    settings.ORDER_TAX_RATE = Decimal("0.20")
    settings.ORDER_SHIPPING_FEE = Decimal("5.00")
    settings.ORDER_FREE_SHIPPING_THRESHOLD = Decimal("50.00")

    policy = pricing.PricingPolicy.from_settings()

    assert policy == pricing.PricingPolicy(
        tax_rate=Decimal("0.20"),
        shipping_fee=Decimal("5.00"),
        free_shipping_threshold=Decimal("50.00"),
    )

"""Pricing Calculator.

Pure functions over ``Decimal``; nothing here touches the database.

Rules:
- Line subtotal is ``unit_price * quantity`` (quantity must be positive).
- Percentage vouchers take ``value`` percent of the subtotal, capped by
  ``max_discount`` when one is set.
- Fixed-amount vouchers take ``value`` but never more than the subtotal.
- Whatever the type, the discount stays within ``[0, subtotal]``.
- Free-shipping vouchers give no merchandise discount; they waive the
  shipping fee instead.
- Shipping is free when the discounted amount reaches the threshold,
  otherwise a flat fee.
- Tax is a flat rate on the discounted amount.
- Every result is rounded to cents, half-up.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Union

from django.conf import settings

from modules.orders.exceptions import InvalidQuantity
from modules.vouchers.constants import VoucherType

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

Number = Union[Decimal, int, str]


def money(amount: Number) -> Decimal:
    """Round to cents, half-up."""
    return Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PricingPolicy:
    """Rates applied on top of the merchandise subtotal."""

    tax_rate: Decimal = Decimal("0.10")
    shipping_fee: Decimal = Decimal("10.00")
    free_shipping_threshold: Decimal = Decimal("100.00")

    @classmethod
    def from_settings(cls) -> PricingPolicy:
        return cls(
            tax_rate=Decimal(settings.ORDER_TAX_RATE),
            shipping_fee=Decimal(settings.ORDER_SHIPPING_FEE),
            free_shipping_threshold=Decimal(settings.ORDER_FREE_SHIPPING_THRESHOLD),
        )


@dataclass(frozen=True)
class PriceBreakdown:
    subtotal: Decimal
    discount: Decimal
    shipping: Decimal
    tax: Decimal
    total: Decimal


def line_subtotal(unit_price: Number, quantity: int) -> Decimal:
    if quantity <= 0:
        raise InvalidQuantity(f"Quantity must be positive, got {quantity}.")
    return money(Decimal(unit_price) * quantity)


def voucher_discount(
    discount_type: str,
    value: Number,
    subtotal: Number,
    max_discount: Optional[Number] = None,
) -> Decimal:
    subtotal = Decimal(subtotal)
    if discount_type == VoucherType.PERCENTAGE:
        discount = money(subtotal * Decimal(value) / 100)
        if max_discount is not None and discount > Decimal(max_discount):
            discount = money(max_discount)
    elif discount_type == VoucherType.FIXED_AMOUNT:
        discount = money(min(Decimal(value), subtotal))
    elif discount_type == VoucherType.FREE_SHIPPING:
        discount = ZERO
    else:
        raise ValueError(f"Unknown voucher type: {discount_type!r}")
    return min(max(discount, ZERO), money(subtotal))


def shipping_fee(
    amount_after_discount: Number,
    policy: PricingPolicy,
    free_shipping: bool = False,
) -> Decimal:
    if free_shipping or Decimal(amount_after_discount) >= policy.free_shipping_threshold:
        return ZERO
    return money(policy.shipping_fee)


def tax(amount_after_discount: Number, policy: PricingPolicy) -> Decimal:
    return money(Decimal(amount_after_discount) * policy.tax_rate)


def price_order(
    subtotal: Number,
    discount: Number,
    policy: PricingPolicy,
    free_shipping: bool = False,
) -> PriceBreakdown:
    """Combine a subtotal and its voucher discount into the order totals.

    ``total == subtotal - discount + shipping + tax`` holds exactly
    because every component is already rounded to cents.
    """
    subtotal = money(subtotal)
    discount = money(discount)
    discounted = subtotal - discount
    shipping = shipping_fee(discounted, policy, free_shipping=free_shipping)
    tax_amount = tax(discounted, policy)
    return PriceBreakdown(
        subtotal=subtotal,
        discount=discount,
        shipping=shipping,
        tax=tax_amount,
        total=discounted + shipping + tax_amount,
    )


def average(total: Number, count: int) -> Decimal:
    """Mean value rounded half-up; zero when there is nothing to average."""
    if count <= 0:
        return ZERO
    return money(Decimal(total) / count)

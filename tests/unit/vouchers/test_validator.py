"""Unit tests for ``VoucherValidator``.

The validator only reads the voucher, so unsaved instances are enough.
"""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from modules.vouchers.constants import VoucherType
from modules.vouchers.exceptions import VoucherInvalid, VoucherRejection
from modules.vouchers.models import Voucher
from modules.vouchers.validator import VoucherValidator

pytestmark = pytest.mark.unit

NOW = timezone.now()


def _voucher(**overrides) -> Voucher:
    fields = {
        "code": "SAVE10",
        "name": "Save 10",
        "discount_type": VoucherType.PERCENTAGE,
        "value": Decimal("10"),
        "is_active": True,
        "usage_count": 0,
        "start_date": NOW - timedelta(days=1),
        "end_date": NOW + timedelta(days=1),
    }
    fields.update(overrides)
    return Voucher(**fields)


def _reason(voucher, **kwargs) -> VoucherRejection:
    with pytest.raises(VoucherInvalid) as exc_info:
        VoucherValidator().validate(voucher, now=NOW, **kwargs)
    return exc_info.value.reason


class TestValidate:
    def test_valid_voucher_passes(self):
        VoucherValidator().validate(_voucher(), Decimal("50.00"), now=NOW)

    def test_inactive(self):
        assert _reason(_voucher(is_active=False)) == VoucherRejection.INACTIVE

    def test_not_started(self):
        voucher = _voucher(start_date=NOW + timedelta(hours=1))
        assert _reason(voucher) == VoucherRejection.NOT_STARTED

    def test_expired(self):
        voucher = _voucher(
            start_date=NOW - timedelta(days=2), end_date=NOW - timedelta(seconds=1)
        )
        assert _reason(voucher) == VoucherRejection.EXPIRED

    def test_window_bounds_are_inclusive(self):
        VoucherValidator().validate(_voucher(start_date=NOW), now=NOW)
        VoucherValidator().validate(_voucher(end_date=NOW), now=NOW)

    def test_below_minimum_purchase(self):
        voucher = _voucher(min_purchase=Decimal("100.00"))
        reason = _reason(voucher, subtotal=Decimal("99.99"))
        assert reason == VoucherRejection.BELOW_MINIMUM

    def test_minimum_skipped_without_subtotal(self):
        VoucherValidator().validate(_voucher(min_purchase=Decimal("100.00")), now=NOW)

    def test_global_usage_limit_reached(self):
        voucher = _voucher(usage_limit=1, usage_count=1)
        assert _reason(voucher) == VoucherRejection.USAGE_LIMIT_REACHED

    def test_per_user_limit_reached(self):
        voucher = _voucher(per_user_limit=2)
        assert _reason(voucher, customer_uses=2) == VoucherRejection.USER_LIMIT_REACHED

    def test_per_user_limit_not_yet_reached(self):
        VoucherValidator().validate(_voucher(per_user_limit=2), now=NOW, customer_uses=1)

    def test_first_failing_check_wins(self):
        voucher = _voucher(
            is_active=False,
            end_date=NOW - timedelta(seconds=1),
            start_date=NOW - timedelta(days=1),
            usage_limit=1,
            usage_count=5,
        )
        assert _reason(voucher) == VoucherRejection.INACTIVE


class TestDiscountFor:
    def test_returns_capped_percentage(self):
        voucher = _voucher(max_discount=Decimal("10.00"))
        discount = VoucherValidator().discount_for(voucher, Decimal("150.00"), now=NOW)
        assert discount == Decimal("10.00")

    def test_rejected_voucher_gives_no_discount(self):
        voucher = _voucher(usage_limit=3, usage_count=3)
        with pytest.raises(VoucherInvalid):
            VoucherValidator().discount_for(voucher, Decimal("150.00"), now=NOW)

    def test_validation_does_not_touch_counters(self):
        voucher = _voucher(usage_limit=5, usage_count=2)
        VoucherValidator().discount_for(voucher, Decimal("10.00"), now=NOW)
        assert voucher.usage_count == 2

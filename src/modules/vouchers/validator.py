"""Voucher Validator.

Checks, in this order, and stops at the first failure:

1. the voucher is active;
2. ``now`` is not before ``start_date``;
3. ``now`` is not after ``end_date``;
4. the subtotal reaches ``min_purchase`` (when set);
5. ``usage_count`` is below ``usage_limit`` (when set);
6. the customer's previous uses are below ``per_user_limit`` (when set).

Validation has no side effects.  Counters are incremented by the order
service only after the order rows are written.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

import structlog
from django.utils import timezone

from modules.orders import pricing
from modules.vouchers.exceptions import VoucherInvalid, VoucherRejection

if TYPE_CHECKING:
    from modules.vouchers.models import Voucher

logger = structlog.get_logger(__name__)


class VoucherValidator:
    def validate(
        self,
        voucher: Voucher,
        subtotal: Optional[Decimal] = None,
        now: Optional[datetime] = None,
        customer_uses: int = 0,
    ) -> None:
        """Raise ``VoucherInvalid`` unless the voucher applies.

        ``subtotal=None`` skips the minimum-purchase rule (used when a
        customer checks a code before building a cart).
        """
        now = now or timezone.now()

        if not voucher.is_active:
            self._reject(voucher, VoucherRejection.INACTIVE, "Voucher is not active.")
        if now < voucher.start_date:
            self._reject(
                voucher, VoucherRejection.NOT_STARTED, "Voucher is not yet valid."
            )
        if now > voucher.end_date:
            self._reject(voucher, VoucherRejection.EXPIRED, "Voucher has expired.")
        if (
            subtotal is not None
            and voucher.min_purchase is not None
            and subtotal < voucher.min_purchase
        ):
            self._reject(
                voucher,
                VoucherRejection.BELOW_MINIMUM,
                f"Minimum purchase amount is {voucher.min_purchase}.",
            )
        if voucher.usage_limit is not None and voucher.usage_count >= voucher.usage_limit:
            self._reject(
                voucher,
                VoucherRejection.USAGE_LIMIT_REACHED,
                "Voucher usage limit reached.",
            )
        if voucher.per_user_limit is not None and customer_uses >= voucher.per_user_limit:
            self._reject(
                voucher,
                VoucherRejection.USER_LIMIT_REACHED,
                "You have already used this voucher the maximum number of times.",
            )

    def discount_for(
        self,
        voucher: Voucher,
        subtotal: Decimal,
        now: Optional[datetime] = None,
        customer_uses: int = 0,
    ) -> Decimal:
        """Validate, then compute the merchandise discount for ``subtotal``."""
        self.validate(voucher, subtotal, now=now, customer_uses=customer_uses)
        return pricing.voucher_discount(
            voucher.discount_type,
            voucher.value,
            subtotal,
            max_discount=voucher.max_discount,
        )

    @staticmethod
    def _reject(voucher: Voucher, reason: VoucherRejection, message: str) -> None:
        logger.info("voucher.rejected", code=voucher.code, reason=reason.value)
        raise VoucherInvalid(reason, message)

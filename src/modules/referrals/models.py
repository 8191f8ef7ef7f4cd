"""Referral code model.

Invariants:
- ``code`` is unique.
- ``total_earnings == usage_count * reward_amount`` for a fixed reward.
- Both counters only grow, through ``ReferralDjangoRepository.register_use``.
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.db import models

from modules.core.models import BaseModel


def default_reward_amount() -> Decimal:
    return Decimal(settings.REFERRAL_REWARD_AMOUNT)


class ReferralCode(BaseModel):
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="referral_codes",
    )
    code = models.CharField(max_length=20, unique=True)
    usage_count = models.PositiveIntegerField(default=0)
    reward_amount = models.DecimalField(
        max_digits=10, decimal_places=2, default=default_reward_amount
    )
    total_earnings = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "referral_codes"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["user", "is_active"], name="referrals_user_active_idx"),
        ]

    def __str__(self) -> str:
        return self.code

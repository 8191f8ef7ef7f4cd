"""Voucher model.

Business rules implemented:
- Code is unique (normalised to upper case).
- Value is strictly positive; percentage values cannot exceed 100.
- Minimum purchase and maximum discount, when set, are not negative.
- The validity window is closed: ``start_date <= now <= end_date``.
- ``usage_count`` only grows, and only through
  ``VoucherDjangoRepository.increment_usage`` inside an order transaction.
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel
from modules.vouchers.constants import VoucherType


class Voucher(BaseModel):
    """Seller-issued discount code."""

    seller = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="vouchers",
    )
    code = models.CharField(max_length=50, unique=True)
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    discount_type = models.CharField(max_length=20, choices=VoucherType.choices)
    value = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    min_purchase = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True
    )
    max_discount = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True
    )
    usage_limit = models.PositiveIntegerField(null=True, blank=True)
    per_user_limit = models.PositiveIntegerField(null=True, blank=True)
    usage_count = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)
    start_date = models.DateTimeField()
    end_date = models.DateTimeField()

    class Meta:
        db_table = "vouchers"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["seller"], name="vouchers_seller_idx"),
            models.Index(fields=["is_active", "end_date"], name="vouchers_active_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                check=models.Q(value__gt=0),
                name="vouchers_value_positive",
            ),
            models.CheckConstraint(
                check=models.Q(end_date__gte=models.F("start_date")),
                name="vouchers_window_ordered",
            ),
        ]

    def clean(self) -> None:
        super().clean()
        if self.code:
            self.code = self.code.strip().upper()
        if (
            self.discount_type == VoucherType.PERCENTAGE
            and self.value is not None
            and self.value > 100
        ):
            raise ValidationError({"value": "Percentage cannot exceed 100."})
        for field in ("min_purchase", "max_discount"):
            amount = getattr(self, field)
            if amount is not None and amount < 0:
                raise ValidationError({field: "Amount cannot be negative."})
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValidationError({"end_date": "End date precedes start date."})

    def save(self, *args, **kwargs) -> None:
        if self.code:
            self.code = self.code.strip().upper()
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return self.code

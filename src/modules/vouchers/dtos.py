"""Voucher DTOs (Pydantic v2, immutable)."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from modules.vouchers.constants import VoucherType


class CreateVoucherDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: str
    name: str
    description: str = ""
    discount_type: VoucherType
    value: Decimal
    min_purchase: Optional[Decimal] = None
    max_discount: Optional[Decimal] = None
    usage_limit: Optional[int] = None
    per_user_limit: Optional[int] = None
    start_date: datetime
    end_date: datetime

    @field_validator("code")
    @classmethod
    def code_must_not_be_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Voucher code must not be empty.")
        return v.strip().upper()

    @field_validator("value")
    @classmethod
    def value_must_be_positive(cls, v: Decimal) -> Decimal:
        if v <= 0:
            raise ValueError("Voucher value must be greater than zero.")
        return v

    @field_validator("min_purchase", "max_discount")
    @classmethod
    def amounts_must_not_be_negative(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        if v is not None and v < 0:
            raise ValueError("Minimum purchase and maximum discount cannot be negative.")
        return v

    @field_validator("usage_limit", "per_user_limit")
    @classmethod
    def limits_must_be_positive(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 1:
            raise ValueError("Usage limits must be at least 1.")
        return v

    @model_validator(mode="after")
    def check_consistency(self) -> CreateVoucherDTO:
        if self.discount_type == VoucherType.PERCENTAGE and self.value > 100:
            raise ValueError("Percentage cannot exceed 100.")
        if self.end_date < self.start_date:
            raise ValueError("End date must not precede start date.")
        return self


class UpdateVoucherDTO(BaseModel):
    """Only supplied (non-``None``) fields are applied.  Code and type are fixed.

    Rules spanning several fields (percentage cap, date order) depend on
    the stored voucher and are checked by the service after merging.
    """

    model_config = ConfigDict(frozen=True)

    name: Optional[str] = None
    description: Optional[str] = None
    value: Optional[Decimal] = None
    min_purchase: Optional[Decimal] = None
    max_discount: Optional[Decimal] = None
    usage_limit: Optional[int] = None
    per_user_limit: Optional[int] = None
    is_active: Optional[bool] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    @field_validator("value")
    @classmethod
    def value_must_be_positive(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        if v is not None and v <= 0:
            raise ValueError("Voucher value must be greater than zero.")
        return v

    @field_validator("min_purchase", "max_discount")
    @classmethod
    def amounts_must_not_be_negative(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        if v is not None and v < 0:
            raise ValueError("Minimum purchase and maximum discount cannot be negative.")
        return v

    @field_validator("usage_limit", "per_user_limit")
    @classmethod
    def limits_must_be_positive(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 1:
            raise ValueError("Usage limits must be at least 1.")
        return v

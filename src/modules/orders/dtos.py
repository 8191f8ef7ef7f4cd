"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.  These are
the contracts between the API layer (DRF Serializers) and the Service
layer.  DTOs are immutable (``frozen=True``).

- ``ShippingAddressDTO``: delivery address snapshot.
- ``CreateOrderItemDTO``: a single requested line.
- ``CreateOrderDTO``: order creation request.
- ``UpdateStatusDTO``: seller/admin status change.
"""

from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator

from modules.orders.constants import OrderStatus, PaymentMethod


class ShippingAddressDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    full_name: str
    phone: str
    address: str
    city: str
    state: str
    zip_code: str
    country: str


class CreateOrderItemDTO(BaseModel):
    """``unit_price`` is resolved by the Service Layer from the catalogue."""

    model_config = ConfigDict(frozen=True)

    product_id: UUID
    quantity: int

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v


class CreateOrderDTO(BaseModel):
    """Immutable DTO for order creation requests.

    Validates:
    - Each item quantity is positive.
    - The same product may appear on several lines; each becomes its own item.
    - Voucher and referral codes are trimmed and upper-cased; blank means absent.

    An empty ``items`` list passes here and is rejected by the service
    with ``EmptyOrder``.
    """

    model_config = ConfigDict(frozen=True)

    items: List[CreateOrderItemDTO]
    shipping_address: ShippingAddressDTO
    payment_method: PaymentMethod
    voucher_code: Optional[str] = None
    referral_code: Optional[str] = None
    notes: str = ""
    idempotency_key: Optional[str] = None

    @field_validator("voucher_code", "referral_code")
    @classmethod
    def normalise_code(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return v.strip().upper()


class UpdateStatusDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: OrderStatus
    cancel_reason: str = ""
    notes: str = ""

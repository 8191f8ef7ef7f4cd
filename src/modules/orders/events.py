"""Domain events for the Orders bounded context.

Extra fields are plain strings so the outbox JSON payload rebuilds the
same event without type coercion.
"""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class OrderCreated(DomainEvent):
    """Raised when an order is created."""

    order_number: str = ""
    customer_id: str = ""
    total: str = "0.00"


@dataclass(frozen=True)
class OrderStatusChanged(DomainEvent):
    """Raised on every status transition, cancellations included."""

    old_status: str = ""
    new_status: str = ""


@dataclass(frozen=True)
class OrderCancelled(DomainEvent):
    """Raised when an order is cancelled and its stock returned."""

    reason: str = ""

"""Order domain exceptions.

Raised by the Service Layer when business rules are violated.  The API
layer (Views) catches these and translates them into HTTP responses.
Stock failures originate in the Stock Ledger and are re-exported here
because they abort order creation.
"""

from __future__ import annotations

from modules.products.exceptions import (  # noqa: F401
    InactiveProduct,
    InsufficientStock,
    ProductNotFound,
)
from shared.domain.exceptions import InvalidInput, NotFound


class OrderNotFound(NotFound):
    """The requested order does not exist or has been soft-deleted."""


class InvalidStateTransition(InvalidInput):
    """The order cannot move from its current status to the requested one."""

    def __init__(self, current: str, target: str, message: str | None = None) -> None:
        self.current = current
        self.target = target
        super().__init__(
            message or f"Cannot change order status from {current} to {target}."
        )


class InvalidQuantity(InvalidInput):
    """An order line asked for zero or a negative number of units."""


class EmptyOrder(InvalidInput):
    """An order must contain at least one item."""

"""Product domain exceptions.

Raised by the Service Layer and the Stock Ledger when business rules
are violated.  The API layer (Views) catches these and translates them
into appropriate HTTP responses.
"""

from __future__ import annotations

from shared.domain.exceptions import Conflict, DomainError, InvalidInput, NotFound


class ProductAlreadyExists(Conflict):
    """A product with the same SKU already exists."""


class ProductNotFound(NotFound):
    """The requested product does not exist or has been soft-deleted."""


class InactiveProduct(InvalidInput):
    """The product is not available for sale."""


class InsufficientStock(DomainError):
    """Requested quantity exceeds the product's available stock."""

    def __init__(self, product_id, requested: int, available: int) -> None:
        self.product_id = product_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock for product {product_id}: "
            f"requested {requested}, available {available}."
        )

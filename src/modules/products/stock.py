"""Stock Ledger: the only code path that writes ``Product.stock_quantity``.

Every adjustment is a single ``UPDATE`` statement built from an ``F()``
expression, so the database applies it against the current row value
instead of a value read earlier in Python.  ``debit`` only matches rows
that still hold enough stock, which makes two concurrent debits against
a stale read unable to oversell: the second one updates zero rows.

The ledger never opens its own transaction.  Callers (the order
service) wrap every debit of one order in ``transaction.atomic`` so a
later failure rolls the earlier debits back.
"""

from __future__ import annotations

from typing import Dict, Iterable, Union
from uuid import UUID

import structlog
from django.db.models import F

from modules.products.exceptions import (
    InactiveProduct,
    InsufficientStock,
    ProductNotFound,
)
from modules.products.models import Product, ProductStatus

logger = structlog.get_logger(__name__)

ProductId = Union[UUID, str]


class StockLedger:
    """Debit/credit available stock of catalogue products."""

    def lock(self, product_ids: Iterable[ProductId]) -> Dict[str, Product]:
        """Lock the given product rows (SELECT FOR UPDATE) in primary-key order.

        Locking in a stable order keeps two orders sharing products from
        deadlocking each other.  Returns the rows keyed by ``str(id)``;
        missing or soft-deleted products are simply absent.
        """
        ids = sorted({str(pid) for pid in product_ids})
        rows = (
            Product.objects.alive()
            .select_for_update()
            .filter(id__in=ids)
            .order_by("id")
        )
        return {str(product.id): product for product in rows}

    def debit(self, product_id: ProductId, quantity: int) -> int:
        """Remove ``quantity`` units and return the remaining stock.

        Raises:
            ProductNotFound: the product does not exist (or is deleted).
            InactiveProduct: the product is not for sale.
            InsufficientStock: fewer than ``quantity`` units remain.
        """
        if quantity <= 0:
            raise ValueError("Debit quantity must be positive.")

        updated = (
            Product.objects.alive()
            .filter(
                id=product_id,
                status=ProductStatus.ACTIVE,
                stock_quantity__gte=quantity,
            )
            .update(stock_quantity=F("stock_quantity") - quantity)
        )

        if not updated:
            product = Product.objects.alive().filter(id=product_id).first()
            if product is None:
                raise ProductNotFound(f"Product {product_id} not found.")
            if product.status != ProductStatus.ACTIVE:
                raise InactiveProduct(f"Product {product_id} is not available.")
            logger.warning(
                "stock.insufficient",
                product_id=str(product_id),
                requested=quantity,
                available=product.stock_quantity,
            )
            raise InsufficientStock(product_id, quantity, product.stock_quantity)

        remaining = self.available(product_id)
        logger.info(
            "stock.debited",
            product_id=str(product_id),
            quantity=quantity,
            remaining=remaining,
        )
        return remaining

    def credit(self, product_id: ProductId, quantity: int) -> int:
        """Return ``quantity`` units to stock (cancellation path).

        Soft-deleted products are credited too: the units physically came
        back even if the listing is gone.
        """
        if quantity <= 0:
            raise ValueError("Credit quantity must be positive.")

        updated = Product.objects.filter(id=product_id).update(
            stock_quantity=F("stock_quantity") + quantity
        )
        if not updated:
            raise ProductNotFound(f"Product {product_id} not found.")

        remaining = self.available(product_id, include_deleted=True)
        logger.info(
            "stock.credited",
            product_id=str(product_id),
            quantity=quantity,
            remaining=remaining,
        )
        return remaining

    def available(self, product_id: ProductId, include_deleted: bool = False) -> int:
        queryset = Product.objects.all() if include_deleted else Product.objects.alive()
        value = (
            queryset.filter(id=product_id)
            .values_list("stock_quantity", flat=True)
            .first()
        )
        if value is None:
            raise ProductNotFound(f"Product {product_id} not found.")
        return value

"""Product service layer (Use Cases).

Catalogue maintenance for sellers.  Stock movements caused by orders do
**not** go through here; they use ``modules.products.stock.StockLedger``.

Business rules enforced here:
- SKU must be unique.
- Only the owning seller or an admin may change or delete a product.
- Customers cannot create products.
- Deletion is a soft delete.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from django.db import models, transaction

from modules.accounts.actors import Actor, AdminActor, CustomerActor, SellerActor
from modules.products.exceptions import ProductAlreadyExists, ProductNotFound
from modules.products.models import Product
from shared.domain.exceptions import Unauthorized

if TYPE_CHECKING:
    from modules.products.dtos import CreateProductDTO, UpdateProductDTO
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


def can_manage_product(actor: Actor, product: Product) -> bool:
    if isinstance(actor, AdminActor):
        return True
    return isinstance(actor, SellerActor) and product.seller_id == actor.id


class ProductService:
    """Application service for Product use-cases."""

    def __init__(self, repository: IProductRepository) -> None:
        self._repo = repository

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_product(self, dto: CreateProductDTO, actor: Actor) -> Product:
        """Create a product owned by ``actor``.

        Raises:
            Unauthorized: the actor is a customer.
            ProductAlreadyExists: the SKU is already taken.
        """
        if isinstance(actor, CustomerActor):
            raise Unauthorized("Only sellers and admins can create products.")

        log = logger.bind(sku=dto.sku, seller_id=str(actor.id))
        if self._repo.get_by_sku(dto.sku):
            log.warning("product.duplicate_sku")
            raise ProductAlreadyExists(f"SKU '{dto.sku}' already registered.")

        product = Product(
            seller_id=actor.id,
            sku=dto.sku,
            name=dto.name,
            price=dto.price,
            description=dto.description,
            category=dto.category,
            stock_quantity=dto.stock_quantity,
        )
        product = self._repo.save(product)
        log.info("product.created", product_id=str(product.id))
        return product

    @transaction.atomic
    def update_product(self, id: str, dto: UpdateProductDTO, actor: Actor) -> Product:
        product = self.get_product(id)
        if not can_manage_product(actor, product):
            raise Unauthorized("You can only update your own products.")

        for field in (
            "name",
            "price",
            "description",
            "category",
            "stock_quantity",
            "status",
        ):
            value = getattr(dto, field)
            if value is not None:
                setattr(product, field, value)

        product = self._repo.save(product)
        logger.info("product.updated", product_id=str(id))
        return product

    @transaction.atomic
    def delete_product(self, id: str, actor: Actor) -> None:
        product = self.get_product(id)
        if not can_manage_product(actor, product):
            raise Unauthorized("You can only delete your own products.")
        self._repo.delete(product)
        logger.info("product.soft_deleted", product_id=str(id))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_products(self, seller_id: str | None = None) -> "models.QuerySet[Product]":
        return self._repo.list(seller_id)

    def get_product(self, id: str) -> Product:
        """Retrieve a single live product.

        Raises:
            ProductNotFound: if the product does not exist.
        """
        product = self._repo.get_by_id(id)
        if not product:
            raise ProductNotFound(f"Product {id} not found.")
        return product

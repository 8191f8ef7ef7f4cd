"""Product repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Optional

from django.db import models

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.products.models import Product


class IProductRepository(IRepository["Product"]):
    """Repository contract for the Product aggregate."""

    @abstractmethod
    def list(self, seller_id: Optional[str] = None) -> "models.QuerySet[Product]":
        """List live products, optionally restricted to one seller."""

    @abstractmethod
    def get_by_sku(self, sku: str) -> Optional["Product"]:
        """Retrieve a product by SKU."""

    @abstractmethod
    def delete(self, entity: "Product") -> None:
        """Soft-delete a product."""

"""Django ORM implementation of the Product repository.

Methods return ``None`` for missing rows instead of raising; the
Service Layer decides which domain exception to raise.
"""

from __future__ import annotations

from typing import Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import models

from modules.products.models import Product
from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class ProductDjangoRepository(IProductRepository):
    """Concrete Product repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Product]:
        try:
            return Product.objects.alive().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, seller_id: Optional[str] = None) -> "models.QuerySet[Product]":
        queryset = Product.objects.alive().select_related("seller")
        if seller_id is not None:
            queryset = queryset.filter(seller_id=seller_id)
        return queryset

    def save(self, entity: Product) -> Product:
        entity.save()
        logger.info("product.saved", product_id=str(entity.id), sku=entity.sku)
        return entity

    def delete(self, entity: Product) -> None:
        entity.delete()

    def get_by_sku(self, sku: str) -> Optional[Product]:
        """SKU look-up is case-insensitive through upper-case normalisation."""
        return Product.objects.filter(sku=sku.strip().upper()).first()

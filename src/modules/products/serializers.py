"""Product DRF serializers for API input/output."""

from __future__ import annotations

from rest_framework import serializers

from modules.products.models import Product, ProductStatus


class ProductSerializer(serializers.ModelSerializer):
    """Read serializer for the Product resource."""

    seller_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "seller_id",
            "sku",
            "name",
            "description",
            "category",
            "price",
            "stock_quantity",
            "status",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ProductWriteSerializer(serializers.Serializer):
    """Input shape for create (all required fields) and partial update."""

    sku = serializers.CharField(max_length=64)
    name = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True)
    category = serializers.CharField(max_length=100, required=False, allow_blank=True)
    price = serializers.DecimalField(max_digits=10, decimal_places=2)
    stock_quantity = serializers.IntegerField(required=False, min_value=0)
    status = serializers.ChoiceField(choices=ProductStatus.choices, required=False)

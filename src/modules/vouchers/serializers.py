"""Voucher DRF serializers."""

from __future__ import annotations

from rest_framework import serializers

from modules.vouchers.constants import VoucherType
from modules.vouchers.models import Voucher


class VoucherSerializer(serializers.ModelSerializer):
    seller_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = Voucher
        fields = [
            "id",
            "seller_id",
            "code",
            "name",
            "description",
            "discount_type",
            "value",
            "min_purchase",
            "max_discount",
            "usage_limit",
            "per_user_limit",
            "usage_count",
            "is_active",
            "start_date",
            "end_date",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class VoucherWriteSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=50)
    name = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True)
    discount_type = serializers.ChoiceField(choices=VoucherType.choices)
    value = serializers.DecimalField(max_digits=10, decimal_places=2)
    min_purchase = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=0, required=False, allow_null=True
    )
    max_discount = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=0, required=False, allow_null=True
    )
    usage_limit = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    per_user_limit = serializers.IntegerField(
        min_value=1, required=False, allow_null=True
    )
    is_active = serializers.BooleanField(required=False)
    start_date = serializers.DateTimeField()
    end_date = serializers.DateTimeField()

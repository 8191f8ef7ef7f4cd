from rest_framework import serializers

from modules.referrals.models import ReferralCode


class ReferralCodeSerializer(serializers.ModelSerializer):
    user_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = ReferralCode
        fields = [
            "id",
            "user_id",
            "code",
            "usage_count",
            "reward_amount",
            "total_earnings",
            "is_active",
            "created_at",
        ]
        read_only_fields = fields

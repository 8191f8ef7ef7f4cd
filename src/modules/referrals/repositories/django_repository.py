"""Django ORM implementation of the Referral repository."""

from __future__ import annotations

from typing import Optional

import structlog
from django.core.exceptions import ValidationError
from django.db.models import F

from modules.referrals.models import ReferralCode
from modules.referrals.repositories.interfaces import IReferralRepository

logger = structlog.get_logger(__name__)


class ReferralDjangoRepository(IReferralRepository):
    def get_by_id(self, id: str) -> Optional[ReferralCode]:
        try:
            return ReferralCode.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_active_by_code(self, code: str) -> Optional[ReferralCode]:
        return ReferralCode.objects.filter(
            code=code.strip().upper(), is_active=True
        ).first()

    def get_active_for_user(self, user_id) -> Optional[ReferralCode]:
        return ReferralCode.objects.filter(user_id=user_id, is_active=True).first()

    def code_exists(self, code: str) -> bool:
        return ReferralCode.objects.filter(code=code).exists()

    def register_use(self, referral: ReferralCode) -> None:
        ReferralCode.objects.filter(id=referral.id).update(
            usage_count=F("usage_count") + 1,
            total_earnings=F("total_earnings") + F("reward_amount"),
        )
        referral.refresh_from_db(fields=["usage_count", "total_earnings"])

    def save(self, entity: ReferralCode) -> ReferralCode:
        entity.save()
        return entity

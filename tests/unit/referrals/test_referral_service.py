from __future__ import annotations

from decimal import Decimal

import pytest

from modules.referrals.exceptions import ReferralCodeAlreadyExists, ReferralCodeNotFound
from modules.referrals.models import ReferralCode
from modules.referrals.repositories.django_repository import ReferralDjangoRepository
from modules.referrals.services import ReferralService, code_prefix

pytestmark = pytest.mark.unit


@pytest.fixture()
def service():
    return ReferralService(repository=ReferralDjangoRepository())


class TestCodePrefix:
    @pytest.mark.parametrize(
        "email,expected",
        [
            ("john.doe@example.com", "JOHNDO"),
            ("ab@example.com", "AB"),
            ("...@example.com", "REF"),
            ("", "REF"),
        ],
    )
    def test_prefix(self, email, expected):
        assert code_prefix(email) == expected


class TestGenerateCode:
    def test_generates_prefixed_code(self, service, customer_user):
        referral = service.generate_code(customer_user)

        assert referral.code.startswith("CUSTOM")
        assert len(referral.code) == 12
        assert referral.code == referral.code.upper()
        assert referral.usage_count == 0
        assert referral.total_earnings == Decimal("0.00")

    def test_reward_amount_from_settings(self, service, customer_user, settings):
        settings.REFERRAL_REWARD_AMOUNT = Decimal("7.50")
        referral = service.generate_code(customer_user)
        referral.refresh_from_db()
        assert referral.reward_amount == Decimal("7.50")

    def test_one_active_code_per_user(self, service, customer_user):
        service.generate_code(customer_user)
        with pytest.raises(ReferralCodeAlreadyExists):
            service.generate_code(customer_user)

    def test_new_code_after_deactivation(self, service, customer_user):
        first = service.generate_code(customer_user)
        ReferralCode.objects.filter(id=first.id).update(is_active=False)

        second = service.generate_code(customer_user)

        assert second.id != first.id


class TestRegisterUse:
    def test_credits_usage_and_earnings(self, service, seller_user):
        referral = ReferralCode.objects.create(
            user=seller_user, code="SELLER000001", reward_amount=Decimal("5.00")
        )

        service.register_use("seller000001")
        credited = service.register_use("SELLER000001")

        assert credited.id == referral.id
        assert credited.usage_count == 2
        assert credited.total_earnings == Decimal("10.00")

    @pytest.mark.parametrize("code", [None, "", "UNKNOWN"])
    def test_unknown_or_missing_code_is_ignored(self, service, code):
        assert service.register_use(code) is None


class TestQueries:
    def test_get_my_code(self, service, customer_user):
        referral = service.generate_code(customer_user)
        assert service.get_my_code(customer_user).id == referral.id

    def test_get_my_code_without_one(self, service, customer_user):
        with pytest.raises(ReferralCodeNotFound):
            service.get_my_code(customer_user)

    def test_validate_code(self, service, customer_user):
        referral = service.generate_code(customer_user)
        assert service.validate_code(referral.code.lower()).id == referral.id
        with pytest.raises(ReferralCodeNotFound):
            service.validate_code("NOPE")

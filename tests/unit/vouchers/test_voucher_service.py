from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from modules.vouchers.constants import VoucherType
from modules.vouchers.dtos import CreateVoucherDTO, UpdateVoucherDTO
from modules.vouchers.exceptions import (
    InvalidVoucherData,
    VoucherAlreadyExists,
    VoucherInvalid,
    VoucherNotFound,
    VoucherRejection,
)
from modules.vouchers.repositories.django_repository import VoucherDjangoRepository
from modules.vouchers.services import VoucherService
from shared.domain.exceptions import Unauthorized

pytestmark = pytest.mark.unit


@pytest.fixture()
def service():
    return VoucherService(repository=VoucherDjangoRepository())


def _create_dto(**overrides) -> CreateVoucherDTO:
    now = timezone.now()
    fields = {
        "code": " spring20 ",
        "name": "Spring sale",
        "discount_type": VoucherType.PERCENTAGE,
        "value": Decimal("20"),
        "start_date": now - timedelta(days=1),
        "end_date": now + timedelta(days=7),
    }
    fields.update(overrides)
    return CreateVoucherDTO(**fields)


class TestCreateVoucherDTO:
    def test_percentage_above_100_rejected(self):
        with pytest.raises(ValueError):
            _create_dto(value=Decimal("120"))

    def test_window_must_be_ordered(self):
        now = timezone.now()
        with pytest.raises(ValueError):
            _create_dto(start_date=now, end_date=now - timedelta(days=1))

    def test_limits_must_be_positive(self):
        with pytest.raises(ValueError):
            _create_dto(usage_limit=0)

    def test_code_normalised(self):
        assert _create_dto().code == "SPRING20"

    @pytest.mark.parametrize("field", ["min_purchase", "max_discount"])
    def test_amounts_must_not_be_negative(self, field):
        with pytest.raises(ValueError):
            _create_dto(**{field: Decimal("-5.00")})


class TestUpdateVoucherDTO:
    @pytest.mark.parametrize("field", ["min_purchase", "max_discount"])
    def test_amounts_must_not_be_negative(self, field):
        with pytest.raises(ValueError):
            UpdateVoucherDTO(**{field: Decimal("-0.01")})

    def test_limits_must_be_positive(self):
        with pytest.raises(ValueError):
            UpdateVoucherDTO(per_user_limit=0)


class TestCreateVoucher:
    def test_seller_creates_own_voucher(self, service, seller):
        voucher = service.create_voucher(_create_dto(), seller)

        assert voucher.code == "SPRING20"
        assert voucher.seller_id == seller.id
        assert voucher.usage_count == 0
        assert voucher.is_active

    def test_customer_cannot_create(self, service, customer):
        with pytest.raises(Unauthorized):
            service.create_voucher(_create_dto(), customer)

    def test_duplicate_code(self, service, seller, other_seller):
        service.create_voucher(_create_dto(), seller)
        with pytest.raises(VoucherAlreadyExists):
            service.create_voucher(_create_dto(code="Spring20"), other_seller)


class TestManageVoucher:
    def test_owner_updates(self, service, make_voucher, seller):
        voucher = make_voucher()
        updated = service.update_voucher(
            str(voucher.id), UpdateVoucherDTO(usage_limit=50, name="Renamed"), seller
        )
        assert updated.usage_limit == 50
        assert updated.name == "Renamed"

    def test_update_cannot_push_percentage_above_100(self, service, make_voucher, seller):
        voucher = make_voucher(code="P50", value="50")

        with pytest.raises(InvalidVoucherData) as exc_info:
            service.update_voucher(
                str(voucher.id), UpdateVoucherDTO(value=Decimal("150")), seller
            )

        assert "value" in exc_info.value.errors
        voucher.refresh_from_db()
        assert voucher.value == Decimal("50.00")

    def test_update_cannot_reverse_window(self, service, make_voucher, seller):
        voucher = make_voucher()

        with pytest.raises(InvalidVoucherData) as exc_info:
            service.update_voucher(
                str(voucher.id),
                UpdateVoucherDTO(end_date=voucher.start_date - timedelta(days=1)),
                seller,
            )

        assert "end_date" in exc_info.value.errors

    def test_fixed_amount_may_exceed_100(self, service, make_voucher, seller):
        voucher = make_voucher(code="FLAT", discount_type=VoucherType.FIXED_AMOUNT)
        updated = service.update_voucher(
            str(voucher.id), UpdateVoucherDTO(value=Decimal("150")), seller
        )
        assert updated.value == Decimal("150")

    def test_other_seller_denied(self, service, make_voucher, other_seller):
        voucher = make_voucher()
        with pytest.raises(Unauthorized):
            service.update_voucher(str(voucher.id), UpdateVoucherDTO(name="x"), other_seller)

    def test_admin_deactivates(self, service, make_voucher, admin):
        voucher = make_voucher()
        assert service.deactivate_voucher(str(voucher.id), admin).is_active is False

    def test_missing_voucher(self, service, admin):
        with pytest.raises(VoucherNotFound):
            service.get_voucher("not-a-uuid", admin)

    def test_listing_scoped_to_seller(
        self, service, make_voucher, seller, other_seller, other_seller_user, admin, customer
    ):
        make_voucher(code="MINE")
        make_voucher(code="THEIRS", seller=other_seller_user)

        assert [v.code for v in service.list_vouchers(seller)] == ["MINE"]
        assert [v.code for v in service.list_vouchers(other_seller)] == ["THEIRS"]
        assert service.list_vouchers(admin).count() == 2
        with pytest.raises(Unauthorized):
            service.list_vouchers(customer)


class TestCheckCode:
    def test_returns_discount_for_subtotal(self, service, make_voucher, customer):
        make_voucher(code="SAVE10", value="10", max_discount=Decimal("10.00"))
        assert service.check_code("save10", customer, Decimal("150.00")) == Decimal("10.00")

    def test_without_subtotal_only_validates(self, service, make_voucher, customer):
        make_voucher(code="MIN50", min_purchase=Decimal("50.00"))
        assert service.check_code("MIN50", customer) is None

    def test_unknown_code(self, service, customer):
        with pytest.raises(VoucherNotFound):
            service.check_code("NOPE", customer)

    def test_expired(self, service, make_voucher, customer):
        now = timezone.now()
        make_voucher(
            code="OLD",
            start_date=now - timedelta(days=10),
            end_date=now - timedelta(days=1),
        )
        with pytest.raises(VoucherInvalid) as exc_info:
            service.check_code("OLD", customer)
        assert exc_info.value.reason == VoucherRejection.EXPIRED

    def test_per_user_limit_uses_counter(self, make_voucher, customer):
        make_voucher(code="ONCE", per_user_limit=1)
        service = VoucherService(
            repository=VoucherDjangoRepository(), usage_counter=lambda code, _: 1
        )
        with pytest.raises(VoucherInvalid) as exc_info:
            service.check_code("ONCE", customer)
        assert exc_info.value.reason == VoucherRejection.USER_LIMIT_REACHED

    def test_check_has_no_side_effects(self, service, make_voucher, customer):
        voucher = make_voucher(code="SAVE10", usage_limit=1)
        service.check_code("SAVE10", customer, Decimal("20.00"))
        voucher.refresh_from_db()
        assert voucher.usage_count == 0

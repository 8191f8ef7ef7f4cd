from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone
from rest_framework.test import APIClient

from modules.accounts.actors import AdminActor, CustomerActor, SellerActor
from modules.accounts.constants import UserRole
from modules.accounts.models import User
from modules.orders.constants import PaymentMethod
from modules.orders.dtos import CreateOrderDTO, CreateOrderItemDTO, ShippingAddressDTO
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService
from modules.products.models import Product, ProductStatus
from modules.referrals.repositories.django_repository import ReferralDjangoRepository
from modules.referrals.services import ReferralService
from modules.vouchers.constants import VoucherType
from modules.vouchers.models import Voucher
from modules.vouchers.repositories.django_repository import VoucherDjangoRepository

SHIPPING_ADDRESS = {
    "full_name": "Ada Lovelace",
    "phone": "+44 20 7946 0000",
    "address": "12 St James's Square",
    "city": "London",
    "state": "London",
    "zip_code": "SW1Y 4JH",
    "country": "UK",
}


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


# ---------------------------------------------------------------------------
# Users and actors
# ---------------------------------------------------------------------------


def _user(username: str, role: str) -> User:
    return User.objects.create_user(
        username=username,
        email=f"{username}@example.com",
        password="testpass123",
        role=role,
    )


@pytest.fixture()
def customer_user():
    return _user("customer", UserRole.CUSTOMER)


@pytest.fixture()
def other_customer_user():
    return _user("other_customer", UserRole.CUSTOMER)


@pytest.fixture()
def seller_user():
    return _user("seller", UserRole.SELLER)


@pytest.fixture()
def other_seller_user():
    return _user("other_seller", UserRole.SELLER)


@pytest.fixture()
def admin_user():
    return _user("admin", UserRole.ADMIN)


@pytest.fixture()
def customer(customer_user):
    return CustomerActor(id=customer_user.id)


@pytest.fixture()
def other_customer(other_customer_user):
    return CustomerActor(id=other_customer_user.id)


@pytest.fixture()
def seller(seller_user):
    return SellerActor(id=seller_user.id)


@pytest.fixture()
def other_seller(other_seller_user):
    return SellerActor(id=other_seller_user.id)


@pytest.fixture()
def admin(admin_user):
    return AdminActor(id=admin_user.id)


@pytest.fixture()
def client_for(api_client):
    """Return an APIClient authenticated as the given user."""

    def _authenticate(user):
        api_client.force_authenticate(user=user)
        return api_client

    return _authenticate


# ---------------------------------------------------------------------------
# Catalogue
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_product(seller_user):
    counter = {"n": 0}

    def _make(price="50.00", stock=10, seller=None, status=ProductStatus.ACTIVE):
        counter["n"] += 1
        return Product.objects.create(
            seller=seller or seller_user,
            sku=f"SKU-{counter['n']:04d}",
            name=f"Product {counter['n']}",
            price=Decimal(price),
            stock_quantity=stock,
            status=status,
        )

    return _make


@pytest.fixture()
def product(make_product):
    return make_product(price="50.00", stock=10)


@pytest.fixture()
def make_voucher(seller_user):
    def _make(code="SAVE10", discount_type=VoucherType.PERCENTAGE, value="10", **extra):
        now = timezone.now()
        fields = {
            "seller": seller_user,
            "code": code,
            "name": f"Voucher {code}",
            "discount_type": discount_type,
            "value": Decimal(value),
            "start_date": now - timedelta(days=1),
            "end_date": now + timedelta(days=30),
        }
        fields.update(extra)
        return Voucher.objects.create(**fields)

    return _make


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


@pytest.fixture()
def order_service():
    return OrderService(
        order_repository=OrderDjangoRepository(),
        voucher_repository=VoucherDjangoRepository(),
        referral_service=ReferralService(repository=ReferralDjangoRepository()),
    )


@pytest.fixture()
def order_dto():
    """Build a CreateOrderDTO from ``(product, quantity)`` pairs."""

    def _build(*lines, **extra):
        return CreateOrderDTO(
            items=[
                CreateOrderItemDTO(product_id=product.id, quantity=quantity)
                for product, quantity in lines
            ],
            shipping_address=ShippingAddressDTO(**SHIPPING_ADDRESS),
            payment_method=extra.pop("payment_method", PaymentMethod.CREDIT_CARD),
            **extra,
        )

    return _build


@pytest.fixture()
def placed_order(order_service, order_dto, product, customer):
    """A PENDING order of 3 units of ``product`` placed by ``customer``."""
    return order_service.create_order(order_dto((product, 3)), customer)

from __future__ import annotations

import pytest

from modules.products.models import Product

pytestmark = pytest.mark.integration

PRODUCTS_URL = "/api/v1/products/"


class TestProductAPI:
    def test_seller_creates_product(self, client_for, seller_user):
        response = client_for(seller_user).post(
            PRODUCTS_URL,
            {"sku": "mouse-1", "name": "Mouse", "price": "19.90", "stock_quantity": 4},
            format="json",
        )

        assert response.status_code == 201
        data = response.json()
        assert data["sku"] == "MOUSE-1"
        assert data["seller_id"] == str(seller_user.id)

    def test_customer_cannot_create(self, client_for, customer_user):
        response = client_for(customer_user).post(
            PRODUCTS_URL, {"sku": "x", "name": "X", "price": "1.00"}, format="json"
        )
        assert response.status_code == 403

    def test_duplicate_sku_is_409(self, client_for, seller_user, product):
        response = client_for(seller_user).post(
            PRODUCTS_URL,
            {"sku": product.sku.lower(), "name": "Copy", "price": "1.00"},
            format="json",
        )
        assert response.status_code == 409

    def test_zero_price_is_400(self, client_for, seller_user):
        response = client_for(seller_user).post(
            PRODUCTS_URL, {"sku": "free", "name": "Free", "price": "0.00"}, format="json"
        )
        assert response.status_code == 400

    def test_list_filters_by_seller(
        self, client_for, customer_user, make_product, seller_user, other_seller_user
    ):
        make_product()
        make_product(seller=other_seller_user)
        client = client_for(customer_user)

        assert client.get(PRODUCTS_URL).json()["count"] == 2
        assert client.get(PRODUCTS_URL, {"seller": str(seller_user.id)}).json()["count"] == 1

    def test_other_seller_cannot_update(self, client_for, other_seller_user, product):
        response = client_for(other_seller_user).patch(
            f"{PRODUCTS_URL}{product.id}/", {"price": "1.00"}, format="json"
        )
        assert response.status_code == 403

    def test_owner_updates_price(self, client_for, seller_user, product):
        response = client_for(seller_user).patch(
            f"{PRODUCTS_URL}{product.id}/", {"price": "45.00"}, format="json"
        )
        assert response.status_code == 200
        assert response.json()["price"] == "45.00"

    def test_delete_then_retrieve_is_404(self, client_for, seller_user, product):
        client = client_for(seller_user)

        assert client.delete(f"{PRODUCTS_URL}{product.id}/").status_code == 204
        assert client.get(f"{PRODUCTS_URL}{product.id}/").status_code == 404
        assert Product.objects.filter(id=product.id).exists()

"""HTTP tests for the cart endpoints."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from app.domain.enums import UserRole

API = "/api/v1"


@pytest.fixture
def seller(app_db, make_user):
    return make_user(app_db, role=UserRole.PRODUCER, name="Farmer Joe")


@pytest.fixture
def buyer(app_db, make_user):
    return make_user(app_db)


@pytest.fixture
def product(app_db, seller, make_product):
    return make_product(app_db, seller, price="10.00")


class TestCartEndpoints:
    def test_requires_authentication(self, client: TestClient) -> None:
        assert client.get(f"{API}/cart").status_code == 401
        assert client.post(f"{API}/cart/items", json={"product_id": 1}).status_code == 401

    def test_add_item_returns_201(self, client: TestClient, buyer, product, auth_header) -> None:
        response = client.post(
            f"{API}/cart/items", json={"product_id": product.id, "quantity": 2}, headers=auth_header(buyer)
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["quantity"] == 2
        assert data["subtotal"] == 20

    def test_amounts_are_json_numbers(self, client: TestClient, buyer, seller, app_db, make_product, auth_header) -> None:
        melons = make_product(app_db, seller, price="12.50", name="Melons")
        headers = auth_header(buyer)

        added = client.post(f"{API}/cart/items", json={"product_id": melons.id, "quantity": 3}, headers=headers)
        summary = client.get(f"{API}/cart", headers=headers).json()["data"]["summary"]
        listed = client.get(f"{API}/products/{melons.id}").json()["data"]

        assert isinstance(added.json()["data"]["subtotal"], float)
        assert added.json()["data"]["subtotal"] == 37.5
        assert summary["grand_total"] == 40.5
        assert listed["price"] == 12.5

    def test_add_twice_merges(self, client: TestClient, buyer, product, auth_header) -> None:
        headers = auth_header(buyer)
        client.post(f"{API}/cart/items", json={"product_id": product.id, "quantity": 2}, headers=headers)
        client.post(f"{API}/cart/items", json={"product_id": product.id, "quantity": 1}, headers=headers)

        items = client.get(f"{API}/cart/items", headers=headers).json()["data"]

        assert len(items) == 1
        assert items[0]["quantity"] == 3

    def test_invalid_quantity_is_400(self, client: TestClient, buyer, product, auth_header) -> None:
        response = client.post(
            f"{API}/cart/items", json={"product_id": product.id, "quantity": 0}, headers=auth_header(buyer)
        )
        assert response.status_code == 400

    def test_unknown_product_is_404(self, client: TestClient, buyer, auth_header) -> None:
        response = client.post(f"{API}/cart/items", json={"product_id": 999}, headers=auth_header(buyer))
        assert response.status_code == 404

    def test_item_errors_in_order(self, client: TestClient, buyer, product, make_user, app_db, auth_header) -> None:
        """401 before 404 before 403."""
        added = client.post(f"{API}/cart/items", json={"product_id": product.id}, headers=auth_header(buyer))
        item_id = added.json()["data"]["cart_item_id"]
        stranger = make_user(app_db)

        assert client.put(f"{API}/cart/items/{item_id}", json={"quantity": 2}).status_code == 401
        assert client.put(f"{API}/cart/items/999", json={"quantity": 2}, headers=auth_header(stranger)).status_code == 404
        forbidden = client.put(f"{API}/cart/items/{item_id}", json={"quantity": 2}, headers=auth_header(stranger))
        assert forbidden.status_code == 403

    def test_update_select_and_remove(self, client: TestClient, buyer, product, auth_header) -> None:
        headers = auth_header(buyer)
        item_id = client.post(f"{API}/cart/items", json={"product_id": product.id}, headers=headers).json()["data"]["cart_item_id"]

        updated = client.put(f"{API}/cart/items/{item_id}", json={"quantity": 4}, headers=headers)
        assert updated.json()["data"]["subtotal"] == 40

        selected = client.patch(f"{API}/cart/items/{item_id}/select", json={"is_selected": False}, headers=headers)
        assert selected.json()["data"]["is_selected"] is False
        assert selected.json()["data"]["selected_items_total"] == 0

        removed = client.delete(f"{API}/cart/items/{item_id}", headers=headers)
        assert removed.status_code == 200
        assert removed.json()["data"]["cart_total_items"] == 0

    def test_get_cart_summary(self, client: TestClient, buyer, product, auth_header) -> None:
        headers = auth_header(buyer)
        client.post(f"{API}/cart/items", json={"product_id": product.id, "quantity": 2}, headers=headers)

        data = client.get(f"{API}/cart", headers=headers).json()["data"]

        assert data["grouped_by_seller"][0]["seller"]["name"] == "Farmer Joe"
        assert data["summary"]["grand_total"] == 23

    def test_clear(self, client: TestClient, buyer, product, auth_header) -> None:
        headers = auth_header(buyer)
        client.post(f"{API}/cart/items", json={"product_id": product.id}, headers=headers)

        assert client.delete(f"{API}/cart", headers=headers).status_code == 200
        assert client.get(f"{API}/cart/items", headers=headers).json()["data"] == []

"""HTTP tests for the address endpoints."""

from __future__ import annotations

from fastapi.testclient import TestClient

API = "/api/v1"

ADDRESS = {
    "label": "Home",
    "recipient_name": "Jane",
    "phone": "+62 811 0000",
    "full_address": "Jl. Merdeka 1",
    "city": "Bandung",
    "postal_code": "40111",
}


class TestAddressEndpoints:
    def test_crud_and_primary(self, client: TestClient, app_db, make_user, auth_header) -> None:
        headers = auth_header(make_user(app_db))

        home = client.post(f"{API}/addresses", json={**ADDRESS, "is_primary": True}, headers=headers)
        office = client.post(f"{API}/addresses", json={**ADDRESS, "label": "Office"}, headers=headers)
        assert home.status_code == office.status_code == 201
        office_id = office.json()["data"]["address_id"]

        primary = client.patch(f"{API}/addresses/{office_id}/primary", headers=headers)
        assert primary.json()["data"] == {"address_id": office_id, "is_primary": True}

        listing = client.get(f"{API}/addresses", headers=headers).json()["data"]
        assert listing["total_count"] == 2
        assert [a["is_primary"] for a in listing["addresses"]] == [True, False]
        assert listing["addresses"][0]["address_id"] == office_id

        renamed = client.put(f"{API}/addresses/{office_id}", json={"label": "Work"}, headers=headers)
        assert renamed.json()["data"]["label"] == "Work"

        assert client.delete(f"{API}/addresses/{office_id}", headers=headers).status_code == 200

    def test_missing_fields_is_400(self, client: TestClient, app_db, make_user, auth_header) -> None:
        response = client.post(f"{API}/addresses", json={"label": "Home"}, headers=auth_header(make_user(app_db)))
        assert response.status_code == 400

    def test_foreign_address_is_403(self, client: TestClient, app_db, make_user, auth_header) -> None:
        owner, other = make_user(app_db), make_user(app_db)
        created = client.post(f"{API}/addresses", json=ADDRESS, headers=auth_header(owner)).json()["data"]

        response = client.patch(f"{API}/addresses/{created['address_id']}/primary", headers=auth_header(other))

        assert response.status_code == 403
        assert client.delete(f"{API}/addresses/999", headers=auth_header(other)).status_code == 404

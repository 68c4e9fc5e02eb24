"""Tests for the client API."""

import pytest

from fakturace.models.audit_log import AuditLog
from tests.conftest import auth_headers, make_client, make_user


@pytest.fixture
def headers(user):
    return auth_headers(user)


def _payload(**overrides) -> dict:
    payload = {
        "name": "Stavby Brno a.s.",
        "company_id": "25596641",
        "contact_email": "fakturace@stavby.example.com",
        "address": {"street": "Masarykova", "house_number": "5", "city": "Brno", "zip": "60200"},
    }
    payload.update(overrides)
    return payload


class TestCreateClient:
    def test_create(self, client, headers) -> None:
        response = client.post("/api/clients", json=_payload(), headers=headers)
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["name"] == "Stavby Brno a.s."
        assert data["address"]["country"] == "Česká republika"

    def test_invalid_ico(self, client, headers) -> None:
        response = client.post(
            "/api/clients", json=_payload(company_id="12345678"), headers=headers
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Neplatné IČO"

    def test_blank_optional_fields(self, client, headers) -> None:
        response = client.post(
            "/api/clients",
            json=_payload(company_id="", contact_email="", contact_phone=" "),
            headers=headers,
        )
        assert response.status_code == 201
        assert response.json()["data"]["company_id"] is None

    def test_name_too_short(self, client, headers) -> None:
        response = client.post("/api/clients", json=_payload(name="A"), headers=headers)
        assert response.status_code == 400
        assert response.json()["errorCode"] == "VALIDATION_ERROR"

    def test_audited(self, client, headers, db_session) -> None:
        created = client.post("/api/clients", json=_payload(), headers=headers).json()["data"]
        entry = db_session.query(AuditLog).filter(AuditLog.action == "client.create").one()
        assert entry.entity_id == created["id"]


class TestListClients:
    def test_sorted_by_name_with_total(self, client, headers, db_session, user) -> None:
        make_client(db_session, user, name="Zelenina s.r.o.")
        make_client(db_session, user, name="Auto Praha s.r.o.")
        response = client.get("/api/clients", headers=headers)
        assert response.headers["X-Total-Count"] == "2"
        names = [row["name"] for row in response.json()["data"]]
        assert names == ["Auto Praha s.r.o.", "Zelenina s.r.o."]

    def test_search(self, client, headers, db_session, user) -> None:
        make_client(db_session, user, name="Zelenina s.r.o.")
        make_client(db_session, user, name="Auto Praha s.r.o.", company_id="25596641")
        response = client.get("/api/clients", params={"search": "2559"}, headers=headers)
        assert [row["name"] for row in response.json()["data"]] == ["Auto Praha s.r.o."]

    def test_only_own_clients(self, client, headers, db_session) -> None:
        other = make_user(db_session, email="cizi@example.com")
        foreign = make_client(db_session, other)
        assert client.get("/api/clients", headers=headers).json()["data"] == []
        response = client.get(f"/api/clients/{foreign.id}", headers=headers)
        assert response.status_code == 404


class TestUpdateDeleteClient:
    def test_update_records_changes(self, client, headers, customer, db_session) -> None:
        response = client.put(
            f"/api/clients/{customer.id}", json={"name": "Nový název s.r.o."}, headers=headers
        )
        assert response.status_code == 200
        assert response.json()["data"]["name"] == "Nový název s.r.o."
        entry = db_session.query(AuditLog).filter(AuditLog.action == "client.update").one()
        assert entry.changes == {
            "name": {"old": "Odběratel s.r.o.", "new": "Nový název s.r.o."}
        }

    def test_update_invalid_ico(self, client, headers, customer) -> None:
        response = client.put(
            f"/api/clients/{customer.id}", json={"company_id": "11111111"}, headers=headers
        )
        assert response.status_code == 400

    def test_delete(self, client, headers, customer) -> None:
        response = client.delete(f"/api/clients/{customer.id}", headers=headers)
        assert response.status_code == 200
        assert client.get(f"/api/clients/{customer.id}", headers=headers).status_code == 404

    def test_delete_with_invoices_blocked(self, client, headers, customer) -> None:
        client.post(
            "/api/invoices",
            json={
                "client_id": str(customer.id),
                "issue_date": "2026-03-01",
                "items": [{"description": "Konzultace", "quantity": "1", "unit_price": "900"}],
            },
            headers=headers,
        )
        response = client.delete(f"/api/clients/{customer.id}", headers=headers)
        assert response.status_code == 400
        assert "existujícími fakturami" in response.json()["error"]

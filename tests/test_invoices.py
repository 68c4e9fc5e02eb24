"""Tests for the invoice API."""

import sys
from unittest.mock import MagicMock, patch

import pytest

from fakturace.models.audit_log import AuditLog
from fakturace.models.invoice import InvoiceStatus
from fakturace.services.quota_service import QuotaService
from fakturace.services.spayd import is_valid_iban
from tests.conftest import auth_headers, make_client, make_user


def _invoice_payload(customer, **overrides) -> dict:
    payload = {
        "client_id": str(customer.id),
        "issue_date": "2026-03-01",
        "items": [
            {"description": "Vývoj webu", "quantity": "2", "unit_price": "100"},
            {"description": "Hosting", "quantity": "1", "unit_price": "50"},
        ],
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def headers(user):
    return auth_headers(user)


@pytest.fixture
def invoice(client, headers, customer):
    response = client.post("/api/invoices", json=_invoice_payload(customer), headers=headers)
    assert response.status_code == 201
    return response.json()["data"]


class TestCreateInvoice:
    def test_create(self, invoice) -> None:
        assert invoice["status_id"] == InvoiceStatus.DRAFT.value
        assert invoice["status_label"] == "Koncept"
        assert float(invoice["total_amount"]) == 250.0
        assert len(invoice["items"]) == 2
        assert invoice["client"]["name"] == "Odběratel s.r.o."

    def test_requires_login(self, client, customer) -> None:
        response = client.post("/api/invoices", json=_invoice_payload(customer))
        assert response.status_code == 401
        assert response.json()["success"] is False

    def test_without_items(self, client, headers, customer) -> None:
        response = client.post(
            "/api/invoices", json=_invoice_payload(customer, items=[]), headers=headers
        )
        assert response.status_code == 400

    def test_invalid_body(self, client, headers) -> None:
        response = client.post("/api/invoices", json={"items": []}, headers=headers)
        assert response.status_code == 400
        assert response.json()["errorCode"] == "VALIDATION_ERROR"

    def test_fifth_invoice_on_free_plan(self, client, headers, customer) -> None:
        for _ in range(4):
            response = client.post(
                "/api/invoices", json=_invoice_payload(customer), headers=headers
            )
            assert response.status_code == 201
        response = client.post("/api/invoices", json=_invoice_payload(customer), headers=headers)
        assert response.status_code == 403
        body = response.json()
        assert body["success"] is False
        assert body["errorCode"] == "INVOICE_LIMIT_REACHED"

    def test_unknown_payment_type(self, client, headers, customer) -> None:
        response = client.post(
            "/api/invoices", json=_invoice_payload(customer, payment_type_id=999), headers=headers
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Neplatný způsob platby"

    def test_unknown_unit(self, client, headers, customer) -> None:
        items = [{"description": "Práce", "unit_price": "100", "unit_id": 999}]
        response = client.post(
            "/api/invoices", json=_invoice_payload(customer, items=items), headers=headers
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Neplatná jednotka"

    def test_audited(self, client, invoice, db_session) -> None:
        entry = db_session.query(AuditLog).filter(AuditLog.action == "invoice.create").one()
        assert entry.entity_id == invoice["id"]


class TestListInvoices:
    def test_list_with_total_header(self, client, headers, invoice) -> None:
        response = client.get("/api/invoices", headers=headers)
        assert response.status_code == 200
        assert response.headers["X-Total-Count"] == "1"
        assert response.json()["data"][0]["id"] == invoice["id"]

    def test_filter_by_status(self, client, headers, invoice) -> None:
        response = client.get(
            "/api/invoices", params={"status_id": [InvoiceStatus.PAID.value]}, headers=headers
        )
        assert response.json()["data"] == []

    def test_other_users_invoices_hidden(self, client, invoice, db_session) -> None:
        other = make_user(db_session, email="cizi@example.com")
        response = client.get(f"/api/invoices/{invoice['id']}", headers=auth_headers(other))
        assert response.status_code == 404

    def test_named_lists(self, client, headers, invoice) -> None:
        for path in ("overdue", "unpaid", "paid", "canceled"):
            response = client.get(f"/api/invoices/{path}", headers=headers)
            assert response.status_code == 200, path
        unpaid = client.get("/api/invoices/unpaid", headers=headers).json()["data"]
        assert [row["id"] for row in unpaid] == [invoice["id"]]

    def test_statistics(self, client, headers, invoice) -> None:
        data = client.get("/api/invoices/statistics", headers=headers).json()["data"]
        assert data["total"] == 1
        assert data["unpaid"] == 1


class TestLifecycleEndpoints:
    def test_send_pay_unpay(self, client, headers, invoice) -> None:
        url = f"/api/invoices/{invoice['id']}"
        sent = client.post(f"{url}/send", headers=headers).json()["data"]
        assert sent["status_id"] == InvoiceStatus.SENT.value
        assert sent["invoice_number"] == "2026-00001"

        paid = client.post(
            f"{url}/mark-paid", json={"payment_date": "2026-03-05"}, headers=headers
        ).json()["data"]
        assert paid["is_paid"] is True
        assert paid["payment_date"] == "2026-03-05"

        unpaid = client.post(f"{url}/mark-unpaid", headers=headers).json()["data"]
        assert unpaid["status_id"] == InvoiceStatus.SENT.value

    def test_mark_paid_without_body(self, client, headers, invoice) -> None:
        url = f"/api/invoices/{invoice['id']}"
        client.post(f"{url}/send", headers=headers)
        response = client.post(f"{url}/mark-paid", headers=headers)
        assert response.status_code == 200
        assert response.json()["data"]["payment_date"] is not None

    def test_invalid_transition(self, client, headers, invoice) -> None:
        response = client.post(f"/api/invoices/{invoice['id']}/mark-paid", headers=headers)
        assert response.status_code == 400
        assert "Nelze změnit stav" in response.json()["error"]

    def test_cancel_and_activate(self, client, headers, invoice) -> None:
        url = f"/api/invoices/{invoice['id']}"
        canceled = client.post(f"{url}/cancel", headers=headers).json()["data"]
        assert canceled["is_canceled"] is True
        activated = client.post(f"{url}/activate", headers=headers).json()["data"]
        assert activated["status_id"] == InvoiceStatus.DRAFT.value
        assert activated["is_canceled"] is False

    def test_status_endpoint(self, client, headers, invoice) -> None:
        url = f"/api/invoices/{invoice['id']}/status"
        response = client.post(url, json={"status_id": 2}, headers=headers)
        assert response.status_code == 200
        assert response.json()["data"]["status_id"] == 2
        response = client.post(url, json={"status_id": 5}, headers=headers)
        assert response.status_code == 400

    def test_status_change_audited(self, client, headers, invoice, db_session) -> None:
        client.post(f"/api/invoices/{invoice['id']}/send", headers=headers)
        entry = (
            db_session.query(AuditLog).filter(AuditLog.action == "invoice.status_change").one()
        )
        assert entry.changes == {"status": {"old": 1, "new": 2}}

    def test_duplicate(self, client, headers, invoice) -> None:
        response = client.post(f"/api/invoices/{invoice['id']}/duplicate", headers=headers)
        assert response.status_code == 201
        assert response.json()["data"]["id"] != invoice["id"]

    def test_duplicate_at_limit_rejected(
        self, client, headers, customer, invoice, db_session, user
    ) -> None:
        for _ in range(3):
            client.post("/api/invoices", json=_invoice_payload(customer), headers=headers)
        response = client.post(f"/api/invoices/{invoice['id']}/duplicate", headers=headers)
        assert response.status_code == 403
        assert response.json()["errorCode"] == "INVOICE_LIMIT_REACHED"
        assert QuotaService(db_session).current_usage(user.id) == 4

    def test_update_with_unknown_payment_type(self, client, headers, invoice) -> None:
        response = client.put(
            f"/api/invoices/{invoice['id']}", json={"payment_type_id": 999}, headers=headers
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Neplatný způsob platby"

    def test_update_and_delete(self, client, headers, invoice) -> None:
        url = f"/api/invoices/{invoice['id']}"
        response = client.put(url, json={"note": "Děkujeme"}, headers=headers)
        assert response.json()["data"]["note"] == "Děkujeme"
        assert client.delete(url, headers=headers).status_code == 200
        assert client.get(url, headers=headers).status_code == 404


class TestPaymentOutputs:
    def test_spayd(self, client, headers, invoice) -> None:
        url = f"/api/invoices/{invoice['id']}"
        client.post(f"{url}/send", headers=headers)
        data = client.get(f"{url}/spayd", headers=headers).json()["data"]
        assert data["spayd"].startswith("SPD*1.0*ACC:CZ")
        assert "AM:250.00" in data["spayd"]
        assert "X-VS:202600001" in data["spayd"]
        assert is_valid_iban(data["iban"])

    def test_spayd_without_bank_account(self, client, db_session) -> None:
        owner = make_user(db_session, email="bezuctu@example.com")
        customer = make_client(db_session, owner)
        headers = auth_headers(owner)
        created = client.post(
            "/api/invoices", json=_invoice_payload(customer), headers=headers
        ).json()["data"]
        response = client.get(f"/api/invoices/{created['id']}/spayd", headers=headers)
        assert response.status_code == 400

    def test_pdf_download(self, client, headers, invoice) -> None:
        mock_weasyprint = MagicMock()
        mock_weasyprint.HTML.return_value.write_pdf.return_value = b"%PDF-1.4 test"
        with patch.dict(sys.modules, {"weasyprint": mock_weasyprint}):
            response = client.get(f"/api/invoices/{invoice['id']}/pdf", headers=headers)

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert response.content == b"%PDF-1.4 test"
        assert "attachment" in response.headers["content-disposition"]

"""Tests for PdfService – HTML rendering and PDF generation."""

import sys
from datetime import date
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from fakturace.services.pdf_service import (
    PdfService,
    _format_address,
    _format_amount,
    _format_date,
    _format_quantity,
)


def _make_issuer(**overrides):  # type: ignore[no-untyped-def]
    defaults = {
        "name": "Jan Novák",
        "bank_account": "19-2000145399/0800",
        "company_id": "27074358",
        "vat_number": None,
        "billing_details": {"street": "Krátká", "house_number": "3", "city": "Praha", "zip": ""},
    }
    defaults.update(overrides)
    return SimpleNamespace(**defaults)


def _make_invoice(**overrides):  # type: ignore[no-untyped-def]
    defaults = {
        "id": "inv-1",
        "invoice_number": "2026-00001",
        "status_label": "Odeslaná",
        "issue_date": date(2026, 3, 1),
        "due_date": date(2026, 3, 15),
        "total_amount": Decimal("250.00"),
        "currency": "CZK",
        "note": None,
        "client": SimpleNamespace(
            name="Odběratel s.r.o.",
            address={"street": "Dlouhá", "house_number": "12", "city": "Praha", "zip": "11000"},
            company_id="25596641",
            vat_number="CZ25596641",
        ),
        "items": [
            SimpleNamespace(
                description="Vývoj webu",
                quantity=Decimal("2.000"),
                unit_price=Decimal("100"),
                unit_id=1,
            ),
            SimpleNamespace(
                description="Hosting",
                quantity=Decimal("1"),
                unit_price=Decimal("50"),
                unit_id=None,
            ),
        ],
    }
    defaults.update(overrides)
    return SimpleNamespace(**defaults)


class TestFormatting:
    def test_amount(self) -> None:
        assert _format_amount(None) == "0.00"
        assert _format_amount(Decimal("12.5")) == "12.50"

    def test_quantity_drops_trailing_zeros(self) -> None:
        assert _format_quantity(Decimal("2.000")) == "2"
        assert _format_quantity(Decimal("1.50")) == "1.5"

    def test_czech_date(self) -> None:
        assert _format_date(date(2026, 3, 5)) == "5. 3. 2026"
        assert _format_date(None) == ""

    def test_address(self) -> None:
        address = {"street": "Dlouhá", "house_number": "12", "city": "Praha", "zip": "11000"}
        assert _format_address(address) == "Dlouhá 12<br>11000 Praha"
        assert _format_address(None) == ""


class TestRenderInvoiceHtml:
    def test_contents(self) -> None:
        html = PdfService().render_invoice_html(_make_invoice(), _make_issuer(), {1: "hod"})
        assert "Faktura 2026-00001" in html
        assert "Odběratel s.r.o." in html
        assert "IČO: 25596641" in html
        assert "DIČ: CZ25596641" in html
        assert "2 hod" in html
        assert "200.00" in html
        assert "Celkem k úhradě: 250.00 CZK" in html
        assert "15. 3. 2026" in html

    def test_includes_spayd(self) -> None:
        html = PdfService().render_invoice_html(_make_invoice(), _make_issuer())
        assert "SPD*1.0*ACC:CZ6508000000192000145399" in html

    def test_spayd_omitted_without_bank_account(self) -> None:
        html = PdfService().render_invoice_html(_make_invoice(), _make_issuer(bank_account=None))
        assert "SPD*" not in html

    def test_escapes_user_text(self) -> None:
        invoice = _make_invoice(note="<script>alert(1)</script>")
        html = PdfService().render_invoice_html(invoice, _make_issuer())
        assert "<script>" not in html
        assert "&lt;script&gt;" in html


class TestGenerateInvoicePdf:
    def test_returns_pdf_bytes(self) -> None:
        mock_weasyprint = MagicMock()
        mock_weasyprint.HTML.return_value.write_pdf.return_value = b"%PDF-1.4 faktura"
        with patch.dict(sys.modules, {"weasyprint": mock_weasyprint}):
            result = PdfService().generate_invoice_pdf(_make_invoice(), _make_issuer())

        assert result == b"%PDF-1.4 faktura"
        html = mock_weasyprint.HTML.call_args.kwargs["string"]
        assert "Faktura 2026-00001" in html

    def test_weasyprint_error_propagates(self) -> None:
        mock_weasyprint = MagicMock()
        mock_weasyprint.HTML.return_value.write_pdf.side_effect = RuntimeError("render failed")
        with (
            patch.dict(sys.modules, {"weasyprint": mock_weasyprint}),
            pytest.raises(RuntimeError, match="render failed"),
        ):
            PdfService().generate_invoice_pdf(_make_invoice(), _make_issuer())

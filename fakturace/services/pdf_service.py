"""Printable invoice: HTML rendered from a template and converted to PDF."""

from __future__ import annotations

import logging
from decimal import Decimal
from html import escape
from string import Template
from typing import TYPE_CHECKING, Any

from fakturace.services.spayd import invoice_spayd

if TYPE_CHECKING:
    from fakturace.models.invoice import Invoice
    from fakturace.models.user import User

logger = logging.getLogger(__name__)

_INVOICE_TEMPLATE = Template("""\
<!DOCTYPE html>
<html lang="cs">
<head>
<meta charset="utf-8">
<style>
  body { font-family: "DejaVu Sans", Arial, sans-serif; font-size: 12px; color: #333; margin: 40px; }
  h1 { font-size: 22px; margin-bottom: 4px; }
  .parties { display: flex; justify-content: space-between; margin-bottom: 30px; }
  .party { width: 48%; }
  .meta td { padding: 2px 8px 2px 0; }
  table.items { width: 100%; border-collapse: collapse; margin: 20px 0; }
  table.items th { text-align: left; border-bottom: 2px solid #333; padding: 6px 8px; }
  table.items td { padding: 6px 8px; border-bottom: 1px solid #ddd; }
  table.items .right { text-align: right; }
  .total { font-size: 16px; font-weight: bold; text-align: right; }
  .payment { margin-top: 30px; font-size: 11px; }
  .spayd { font-family: monospace; word-break: break-all; color: #666; }
</style>
</head>
<body>
<h1>Faktura ${invoice_number}</h1>
<p>${status_label}</p>
<div class="parties">
  <div class="party">
    <strong>Dodavatel</strong><br>
    ${issuer_name}<br>
    ${issuer_address}<br>
    ${issuer_ids}
  </div>
  <div class="party">
    <strong>Odběratel</strong><br>
    ${client_name}<br>
    ${client_address}<br>
    ${client_ids}
  </div>
</div>
<table class="meta">
  <tr><td><strong>Datum vystavení:</strong></td><td>${issue_date}</td></tr>
  <tr><td><strong>Datum splatnosti:</strong></td><td>${due_date}</td></tr>
  <tr><td><strong>Bankovní účet:</strong></td><td>${bank_account}</td></tr>
  <tr><td><strong>Variabilní symbol:</strong></td><td>${variable_symbol}</td></tr>
</table>
<table class="items">
  <thead>
    <tr>
      <th>Popis</th>
      <th class="right">Množství</th>
      <th class="right">Cena za jednotku</th>
      <th class="right">Celkem</th>
    </tr>
  </thead>
  <tbody>
    ${item_rows}
  </tbody>
</table>
<p class="total">Celkem k úhradě: ${total} ${currency}</p>
<p>${note}</p>
<div class="payment">
  <strong>QR platba</strong>
  <p class="spayd">${spayd}</p>
</div>
</body>
</html>
""")

_ITEM_ROW_TEMPLATE = Template(
    '<tr><td>${description}</td><td class="right">${quantity} ${unit}</td>'
    '<td class="right">${unit_price}</td><td class="right">${amount}</td></tr>'
)


def _format_amount(value: object) -> str:
    if value is None:
        return "0.00"
    return f"{Decimal(str(value)):.2f}"


def _format_quantity(value: object) -> str:
    quantity = Decimal(str(value or 0)).normalize()
    return f"{quantity:f}"


def _format_date(value: Any) -> str:
    """Czech ``D. M. YYYY``; empty for a missing date."""
    if value is None:
        return ""
    return f"{value.day}. {value.month}. {value.year}"


def _format_address(address: dict[str, Any] | None) -> str:
    if not address:
        return ""
    street = " ".join(
        part for part in (address.get("street"), address.get("house_number")) if part
    )
    city = " ".join(part for part in (address.get("zip"), address.get("city")) if part)
    return "<br>".join(escape(part) for part in (street, city) if part)


def _format_ids(company_id: str | None, vat_number: str | None) -> str:
    parts = []
    if company_id:
        parts.append(f"IČO: {escape(company_id)}")
    if vat_number:
        parts.append(f"DIČ: {escape(vat_number)}")
    return "<br>".join(parts)


class PdfService:
    """Renders invoices for printing."""

    def render_invoice_html(
        self, invoice: Invoice, issuer: User, units: dict[int, str] | None = None
    ) -> str:
        units = units or {}
        item_rows = "\n    ".join(
            _ITEM_ROW_TEMPLATE.substitute(
                description=escape(item.description or ""),
                quantity=_format_quantity(item.quantity),
                unit=escape(units.get(item.unit_id, "")) if item.unit_id else "",
                unit_price=_format_amount(item.unit_price),
                amount=_format_amount(
                    Decimal(str(item.quantity)) * Decimal(str(item.unit_price))
                ),
            )
            for item in invoice.items
        )

        try:
            spayd = invoice_spayd(invoice, issuer)
        except ValueError:
            logger.info("No SPAYD for invoice %s, issuer has no valid bank account", invoice.id)
            spayd = ""

        client = invoice.client
        return _INVOICE_TEMPLATE.substitute(
            invoice_number=escape(invoice.invoice_number or ""),
            status_label=escape(invoice.status_label),
            issuer_name=escape(issuer.name or ""),
            issuer_address=_format_address(issuer.billing_details),
            issuer_ids=_format_ids(issuer.company_id, issuer.vat_number),
            client_name=escape(client.name if client else ""),
            client_address=_format_address(client.address if client else None),
            client_ids=_format_ids(
                client.company_id if client else None, client.vat_number if client else None
            ),
            issue_date=_format_date(invoice.issue_date),
            due_date=_format_date(invoice.due_date),
            bank_account=escape(issuer.bank_account or ""),
            variable_symbol=escape(invoice.invoice_number or ""),
            item_rows=item_rows,
            total=_format_amount(invoice.total_amount),
            currency=escape(invoice.currency or ""),
            note=escape(invoice.note or ""),
            spayd=escape(spayd),
        )

    def generate_invoice_pdf(
        self, invoice: Invoice, issuer: User, units: dict[int, str] | None = None
    ) -> bytes:
        """Generate a PDF for an invoice.

        Args:
            invoice: The invoice to render, with items and client loaded.
            issuer: The user issuing the invoice.
            units: Unit abbreviations keyed by unit id.

        Returns:
            Raw PDF bytes.
        """
        html = self.render_invoice_html(invoice, issuer, units)

        import weasyprint

        pdf_bytes: bytes = weasyprint.HTML(string=html).write_pdf()
        return pdf_bytes

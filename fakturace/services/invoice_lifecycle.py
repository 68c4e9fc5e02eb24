"""Invoice lifecycle: creation, draft edits and status transitions.

Statuses and the moves between them::

    draft ──send──▶ sent ──mark paid──▶ paid
      ▲               │  ◀──mark unpaid──┘
      └─return to draft┘
    sent/overdue ──▶ partially paid ──▶ paid
    any unpaid, uncanceled ──cancel──▶ canceled ──activate──▶ draft | sent

"Overdue" is never stored. It is derived from ``due_date`` when listing.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from fakturace.core.errors import NotFoundError, ValidationError
from fakturace.models.invoice import Invoice, InvoiceStatus
from fakturace.models.user import User
from fakturace.repositories.client_repository import ClientRepository
from fakturace.repositories.invoice_repository import UNPAID_STATUSES, InvoiceRepository
from fakturace.repositories.reference_repository import ReferenceRepository
from fakturace.schemas.invoice import InvoiceCreate, InvoiceItemCreate, InvoiceUpdate
from fakturace.services.quota_service import QuotaService
from fakturace.services.subscription_dates import due_date_for

logger = logging.getLogger(__name__)

DEFAULT_DUE_DAYS = 14
INVOICE_NUMBER_DIGITS = 5

ALLOWED_TRANSITIONS: dict[InvoiceStatus, frozenset[InvoiceStatus]] = {
    InvoiceStatus.DRAFT: frozenset({InvoiceStatus.SENT, InvoiceStatus.CANCELED}),
    InvoiceStatus.SENT: frozenset(
        {
            InvoiceStatus.PAID,
            InvoiceStatus.DRAFT,
            InvoiceStatus.CANCELED,
            InvoiceStatus.PARTIALLY_PAID,
        }
    ),
    InvoiceStatus.OVERDUE: frozenset(
        {InvoiceStatus.PAID, InvoiceStatus.CANCELED, InvoiceStatus.PARTIALLY_PAID}
    ),
    InvoiceStatus.PARTIALLY_PAID: frozenset({InvoiceStatus.PAID, InvoiceStatus.CANCELED}),
    InvoiceStatus.PAID: frozenset({InvoiceStatus.SENT}),
    # Only through activate(), which picks draft or sent itself.
    InvoiceStatus.CANCELED: frozenset({InvoiceStatus.DRAFT, InvoiceStatus.SENT}),
}

EDIT_ONLY_DRAFT = "Lze upravovat pouze faktury ve stavu Koncept"
ITEMS_REQUIRED = "Faktura musí obsahovat alespoň jednu položku"
INVOICE_NOT_FOUND = "Faktura nenalezena"
CLIENT_NOT_FOUND = "Klient nenalezen"


def can_transition(current: InvoiceStatus, target: InvoiceStatus) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def compute_total(items: list[Any]) -> Decimal:
    """Σ quantity × unit_price, rounded to haléře."""
    total = sum(
        (Decimal(str(item.quantity)) * Decimal(str(item.unit_price)) for item in items),
        Decimal("0"),
    )
    return total.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def format_invoice_number(year: int, sequence: int) -> str:
    return f"{year}-{sequence:0{INVOICE_NUMBER_DIGITS}d}"


class InvoiceLifecycleService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = InvoiceRepository(db)
        self.clients = ClientRepository(db)
        self.reference = ReferenceRepository(db)
        self.quota = QuotaService(db)

    # -- lookups ---------------------------------------------------------

    def get_invoice(self, user_id: UUID, invoice_id: UUID) -> Invoice:
        invoice = self.repo.get_by_id(invoice_id, user_id)
        if invoice is None:
            raise NotFoundError(INVOICE_NOT_FOUND)
        return invoice

    def _due_days(self, user: User, due_term_id: int | None) -> int:
        if due_term_id is None:
            defaults = user.default_settings or {}
            due_term_id = defaults.get("due_term_id")
            if due_term_id is None:
                return DEFAULT_DUE_DAYS
        due_term = self.reference.get_due_term(due_term_id)
        if due_term is None:
            raise ValidationError("Neplatná splatnost")
        return int(due_term.days_count)

    def _check_client(self, user_id: UUID, client_id: UUID) -> None:
        if self.clients.get_by_id(client_id, user_id) is None:
            raise NotFoundError(CLIENT_NOT_FOUND)

    def _check_references(
        self, payment_type_id: int | None, items: list[InvoiceItemCreate] | None
    ) -> None:
        if payment_type_id is not None and self.reference.get_payment_type(payment_type_id) is None:
            raise ValidationError("Neplatný způsob platby")
        unit_ids = {item.unit_id for item in items or [] if item.unit_id is not None}
        for unit_id in sorted(unit_ids):
            if self.reference.get_unit(unit_id) is None:
                raise ValidationError("Neplatná jednotka")

    @staticmethod
    def _item_rows(items: list[InvoiceItemCreate]) -> list[dict[str, Any]]:
        return [item.model_dump() for item in items]

    # -- creation and edits ------------------------------------------------

    def create_invoice(self, user: User, data: InvoiceCreate) -> Invoice:
        """Create a draft invoice with its items.

        The quota gate runs first; usage is counted only once the invoice and
        its items are committed.

        Raises:
            InvoiceLimitReachedError: The monthly quota is used up.
            ValidationError: No items, or an unknown due term, payment type or unit.
            NotFoundError: The client does not belong to the user.
        """
        self.quota.ensure_can_create_invoice(user.id)
        if not data.items:
            raise ValidationError(ITEMS_REQUIRED)
        self._check_client(user.id, data.client_id)
        self._check_references(data.payment_type_id, data.items)

        due_days = self._due_days(user, data.due_term_id)
        invoice = self.repo.create(
            user_id=user.id,
            fields={
                "client_id": data.client_id,
                "status_id": InvoiceStatus.DRAFT.value,
                "issue_date": data.issue_date,
                "due_date": due_date_for(data.issue_date, due_days),
                "due_term_id": data.due_term_id,
                "payment_type_id": data.payment_type_id,
                "currency": data.currency,
                "note": data.note,
                "total_amount": compute_total(data.items),
            },
            items=self._item_rows(data.items),
        )
        self.quota.increment_usage(user.id)
        logger.info("Created invoice %s for user %s", invoice.id, user.id)
        return invoice

    def update_invoice(self, user: User, invoice_id: UUID, data: InvoiceUpdate) -> Invoice:
        invoice = self.get_invoice(user.id, invoice_id)
        if invoice.status_id != InvoiceStatus.DRAFT.value:
            raise ValidationError(EDIT_ONLY_DRAFT)

        changes = data.model_dump(exclude_unset=True, exclude={"items"})
        if changes.get("client_id") is not None:
            self._check_client(user.id, changes["client_id"])
        self._check_references(changes.get("payment_type_id"), data.items)
        if "invoice_number" in changes:
            number = (changes["invoice_number"] or "").strip() or None
            if number and self.repo.number_in_use(user.id, number, exclude_id=invoice.id):
                raise ValidationError(f"Číslo faktury {number} je již použito")
            changes["invoice_number"] = number
        for key in ("client_id", "issue_date", "currency"):
            if key in changes and changes[key] is None:
                del changes[key]
        for key, value in changes.items():
            setattr(invoice, key, value)

        if data.items is not None:
            if not data.items:
                raise ValidationError(ITEMS_REQUIRED)
            self.repo.replace_items(invoice, self._item_rows(data.items))

        invoice.total_amount = compute_total(invoice.items)
        invoice.due_date = due_date_for(
            invoice.issue_date, self._due_days(user, invoice.due_term_id)
        )
        return self.repo.save(invoice)

    def duplicate_invoice(self, user: User, invoice_id: UUID) -> Invoice:
        source = self.get_invoice(user.id, invoice_id)
        if not source.items:
            raise ValidationError("Faktura nemá žádné položky k duplikaci")
        data = InvoiceCreate(
            client_id=source.client_id,
            issue_date=source.issue_date or date.today(),
            due_term_id=source.due_term_id,
            payment_type_id=source.payment_type_id,
            currency=source.currency or "CZK",
            note=source.note,
            items=[
                InvoiceItemCreate(
                    description=item.description,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    unit_id=item.unit_id,
                )
                for item in source.items
            ],
        )
        return self.create_invoice(user, data)

    def delete_invoice(self, user_id: UUID, invoice_id: UUID) -> Invoice:
        """Soft delete; only drafts and canceled invoices may go."""
        invoice = self.get_invoice(user_id, invoice_id)
        if invoice.status_id not in (InvoiceStatus.DRAFT.value, InvoiceStatus.CANCELED.value):
            raise ValidationError("Smazat lze pouze koncepty a stornované faktury")
        invoice.is_deleted = True
        return self.repo.save(invoice)

    # -- transitions -------------------------------------------------------

    def _require(self, invoice: Invoice, target: InvoiceStatus) -> None:
        current = invoice.status
        if not can_transition(current, target):
            raise ValidationError(
                f"Nelze změnit stav faktury z „{current.label}“ na „{target.label}“"
            )

    def next_invoice_number(self, user_id: UUID, year: int) -> str:
        sequence = self.repo.max_sequence(user_id, year) + 1
        number = format_invoice_number(year, sequence)
        while self.repo.number_in_use(user_id, number):
            sequence += 1
            number = format_invoice_number(year, sequence)
        return number

    def send_invoice(self, user_id: UUID, invoice_id: UUID) -> Invoice:
        invoice = self.get_invoice(user_id, invoice_id)
        self._require(invoice, InvoiceStatus.SENT)
        if invoice.status_id != InvoiceStatus.DRAFT.value:
            raise ValidationError("Odeslat lze pouze koncept faktury")
        if not invoice.items:
            raise ValidationError(ITEMS_REQUIRED)

        number = invoice.invoice_number
        if not number or self.repo.number_in_use(user_id, number, exclude_id=invoice.id):
            invoice.invoice_number = self.next_invoice_number(user_id, invoice.issue_date.year)
        invoice.status_id = InvoiceStatus.SENT.value
        return self.repo.save(invoice)

    def mark_paid(
        self, user_id: UUID, invoice_id: UUID, payment_date: date | None = None
    ) -> Invoice:
        invoice = self.get_invoice(user_id, invoice_id)
        self._require(invoice, InvoiceStatus.PAID)
        invoice.status_id = InvoiceStatus.PAID.value
        invoice.is_paid = True
        invoice.payment_date = payment_date or date.today()
        return self.repo.save(invoice)

    def mark_unpaid(self, user_id: UUID, invoice_id: UUID) -> Invoice:
        invoice = self.get_invoice(user_id, invoice_id)
        if invoice.status_id != InvoiceStatus.PAID.value:
            raise ValidationError("Faktura není označena jako zaplacená")
        invoice.status_id = InvoiceStatus.SENT.value
        invoice.is_paid = False
        invoice.payment_date = None
        return self.repo.save(invoice)

    def mark_partially_paid(self, user_id: UUID, invoice_id: UUID) -> Invoice:
        invoice = self.get_invoice(user_id, invoice_id)
        self._require(invoice, InvoiceStatus.PARTIALLY_PAID)
        invoice.status_id = InvoiceStatus.PARTIALLY_PAID.value
        return self.repo.save(invoice)

    def return_to_draft(self, user_id: UUID, invoice_id: UUID) -> Invoice:
        invoice = self.get_invoice(user_id, invoice_id)
        if invoice.status_id != InvoiceStatus.SENT.value:
            raise ValidationError("Do konceptu lze vrátit pouze odeslanou fakturu")
        invoice.status_id = InvoiceStatus.DRAFT.value
        return self.repo.save(invoice)

    def cancel_invoice(self, user_id: UUID, invoice_id: UUID) -> Invoice:
        invoice = self.get_invoice(user_id, invoice_id)
        self._require(invoice, InvoiceStatus.CANCELED)
        invoice.status_id = InvoiceStatus.CANCELED.value
        invoice.is_canceled = True
        return self.repo.save(invoice)

    def activate_invoice(self, user_id: UUID, invoice_id: UUID) -> Invoice:
        """Bring a canceled invoice back.

        Without a number it returns as a draft. A number that another active
        invoice now holds is dropped and the invoice returns as a draft, to
        be renumbered when sent. Otherwise it returns as sent.
        """
        invoice = self.get_invoice(user_id, invoice_id)
        if invoice.status_id != InvoiceStatus.CANCELED.value:
            raise ValidationError("Aktivovat lze pouze stornovanou fakturu")

        number = invoice.invoice_number
        if not number:
            target = InvoiceStatus.DRAFT
        elif self.repo.number_in_use(user_id, number, exclude_id=invoice.id):
            logger.info(
                "Invoice number %s already taken, reactivating %s as draft", number, invoice.id
            )
            invoice.invoice_number = None
            target = InvoiceStatus.DRAFT
        else:
            target = InvoiceStatus.SENT

        invoice.status_id = target.value
        invoice.is_canceled = False
        return self.repo.save(invoice)

    def change_status(self, user_id: UUID, invoice_id: UUID, target: InvoiceStatus) -> Invoice:
        """Generic entry point that dispatches to the dedicated transition."""
        invoice = self.get_invoice(user_id, invoice_id)
        current = invoice.status
        if target is InvoiceStatus.OVERDUE:
            raise ValidationError("Stav „Po splatnosti“ se určuje automaticky podle data splatnosti")
        if current is InvoiceStatus.CANCELED:
            raise ValidationError("Stornovanou fakturu lze obnovit pouze aktivací")
        if current is target:
            return invoice
        self._require(invoice, target)

        if target is InvoiceStatus.SENT:
            if current is InvoiceStatus.PAID:
                return self.mark_unpaid(user_id, invoice_id)
            return self.send_invoice(user_id, invoice_id)
        if target is InvoiceStatus.PAID:
            return self.mark_paid(user_id, invoice_id)
        if target is InvoiceStatus.PARTIALLY_PAID:
            return self.mark_partially_paid(user_id, invoice_id)
        if target is InvoiceStatus.DRAFT:
            return self.return_to_draft(user_id, invoice_id)
        return self.cancel_invoice(user_id, invoice_id)

    # -- queries -----------------------------------------------------------

    def list_invoices(self, user_id: UUID, **filters: Any) -> tuple[list[Invoice], int]:
        skip = filters.pop("skip", 0)
        limit = filters.pop("limit", 100)
        order_by = filters.pop("order_by", None)
        items = self.repo.get_all(user_id, skip=skip, limit=limit, order_by=order_by, **filters)
        return items, self.repo.count(user_id, **filters)

    def list_overdue(self, user_id: UUID) -> list[Invoice]:
        return self.repo.get_overdue(user_id)

    def list_unpaid(self, user_id: UUID) -> list[Invoice]:
        return self.repo.get_all(
            user_id, limit=1000, order_by="due_date:asc", status_ids=list(UNPAID_STATUSES)
        )

    def list_paid(self, user_id: UUID) -> list[Invoice]:
        return self.repo.get_all(
            user_id, limit=1000, status_ids=[InvoiceStatus.PAID.value]
        )

    def list_canceled(self, user_id: UUID) -> list[Invoice]:
        return self.repo.get_all(
            user_id, limit=1000, status_ids=[InvoiceStatus.CANCELED.value]
        )

    def statistics(self, user_id: UUID) -> dict[str, Any]:
        return self.repo.statistics(user_id)

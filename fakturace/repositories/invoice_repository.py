from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import case, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from fakturace.core.sorting import apply_order_by
from fakturace.models.invoice import (
    OVERDUE_CANDIDATE_STATUSES,
    Invoice,
    InvoiceItem,
    InvoiceStatus,
)

SORTABLE_FIELDS = {
    "issue_date",
    "due_date",
    "invoice_number",
    "total_amount",
    "status_id",
    "created_at",
}

UNPAID_STATUSES = (
    InvoiceStatus.DRAFT.value,
    InvoiceStatus.SENT.value,
    InvoiceStatus.PARTIALLY_PAID.value,
)


class InvoiceRepository:
    def __init__(self, db: Session):
        self.db = db

    def _filtered(
        self,
        user_id: UUID,
        status_ids: list[int] | None = None,
        client_id: UUID | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
        overdue: bool = False,
        include_canceled: bool = True,
        today: date | None = None,
    ) -> Query:  # type: ignore[type-arg]
        query = self.db.query(Invoice).filter(
            Invoice.user_id == user_id, Invoice.is_deleted.is_(False)
        )
        if status_ids:
            query = query.filter(Invoice.status_id.in_(status_ids))
        if client_id is not None:
            query = query.filter(Invoice.client_id == client_id)
        if date_from is not None:
            query = query.filter(Invoice.issue_date >= date_from)
        if date_to is not None:
            query = query.filter(Invoice.issue_date <= date_to)
        if overdue:
            query = query.filter(
                Invoice.status_id.in_(OVERDUE_CANDIDATE_STATUSES),
                Invoice.due_date < (today or date.today()),
            )
        if not include_canceled:
            query = query.filter(Invoice.status_id != InvoiceStatus.CANCELED.value)
        return query

    def get_all(
        self,
        user_id: UUID,
        skip: int = 0,
        limit: int = 100,
        order_by: str | None = None,
        **filters: Any,
    ) -> list[Invoice]:
        query = apply_order_by(
            self._filtered(user_id, **filters),
            Invoice,
            order_by,
            allowed_fields=SORTABLE_FIELDS,
        )
        return query.offset(skip).limit(limit).all()

    def count(self, user_id: UUID, **filters: Any) -> int:
        return self._filtered(user_id, **filters).count()

    def get_overdue(self, user_id: UUID, today: date | None = None) -> list[Invoice]:
        return (
            self._filtered(user_id, overdue=True, today=today)
            .order_by(Invoice.due_date.asc())
            .all()
        )

    def get_by_id(self, invoice_id: UUID, user_id: UUID | None = None) -> Invoice | None:
        query = self.db.query(Invoice).filter(
            Invoice.id == invoice_id, Invoice.is_deleted.is_(False)
        )
        if user_id is not None:
            query = query.filter(Invoice.user_id == user_id)
        return query.first()

    def create(
        self, *, user_id: UUID, fields: dict[str, Any], items: list[dict[str, Any]]
    ) -> Invoice:
        """Insert the invoice and its items in a single transaction."""
        invoice = Invoice(user_id=user_id, **fields)
        invoice.items = self._build_items(items)
        self.db.add(invoice)
        self.save(invoice)
        return invoice

    def replace_items(self, invoice: Invoice, items: list[dict[str, Any]]) -> None:
        """Swap the whole item list; orphaned rows are deleted on flush."""
        invoice.items = self._build_items(items)

    def save(self, invoice: Invoice) -> Invoice:
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        self.db.refresh(invoice)
        return invoice

    def number_in_use(
        self, user_id: UUID, invoice_number: str, exclude_id: UUID | None = None
    ) -> bool:
        """True when an active invoice of the user already carries the number."""
        query = self.db.query(Invoice.id).filter(
            Invoice.user_id == user_id,
            Invoice.invoice_number == invoice_number,
            Invoice.is_deleted.is_(False),
            Invoice.is_canceled.is_(False),
            Invoice.status_id != InvoiceStatus.CANCELED.value,
        )
        if exclude_id is not None:
            query = query.filter(Invoice.id != exclude_id)
        return query.first() is not None

    def max_sequence(self, user_id: UUID, year: int) -> int:
        """Highest ``NNNNN`` among the user's ``YYYY-NNNNN`` numbers for ``year``.

        Canceled and deleted invoices count too, so their numbers are not
        handed out again.
        """
        rows = (
            self.db.query(Invoice.invoice_number)
            .filter(
                Invoice.user_id == user_id,
                Invoice.invoice_number.like(f"{year}-%"),
            )
            .all()
        )
        highest = 0
        for (number,) in rows:
            try:
                highest = max(highest, int(number.split("-", 1)[1]))
            except (ValueError, IndexError):
                continue
        return highest

    def statistics(self, user_id: UUID, today: date | None = None) -> dict[str, Any]:
        rows = (
            self.db.query(
                Invoice.status_id,
                func.count(Invoice.id),
                func.coalesce(func.sum(Invoice.total_amount), 0),
            )
            .filter(Invoice.user_id == user_id, Invoice.is_deleted.is_(False))
            .group_by(Invoice.status_id)
            .all()
        )
        counts = {status_id: count for status_id, count, _ in rows}
        sums = {status_id: Decimal(str(total)) for status_id, _, total in rows}
        return {
            "total": sum(counts.values()),
            "paid": counts.get(InvoiceStatus.PAID.value, 0),
            "unpaid": sum(counts.get(s, 0) for s in UNPAID_STATUSES),
            "canceled": counts.get(InvoiceStatus.CANCELED.value, 0),
            "overdue": self.count(user_id, overdue=True, today=today),
            "total_revenue": sums.get(InvoiceStatus.PAID.value, Decimal("0")),
            "unpaid_amount": sum(
                (sums.get(s, Decimal("0")) for s in UNPAID_STATUSES), Decimal("0")
            ),
        }

    def stats_by_user(self) -> dict[UUID, dict[str, Any]]:
        """Per-user invoice counts and paid revenue for the admin overview."""
        paid = Invoice.status_id == InvoiceStatus.PAID.value
        rows = (
            self.db.query(
                Invoice.user_id,
                func.count(Invoice.id),
                func.sum(case((paid, 1), else_=0)),
                func.sum(case((Invoice.status_id.in_(UNPAID_STATUSES), 1), else_=0)),
                func.sum(case((paid, Invoice.total_amount), else_=0)),
            )
            .filter(Invoice.is_deleted.is_(False))
            .group_by(Invoice.user_id)
            .all()
        )
        return {
            user_id: {
                "total": total,
                "paid": int(paid_count or 0),
                "unpaid": int(unpaid_count or 0),
                "revenue": Decimal(str(revenue or 0)),
            }
            for user_id, total, paid_count, unpaid_count, revenue in rows
        }

    @staticmethod
    def _build_items(items: list[dict[str, Any]]) -> list[InvoiceItem]:
        return [
            InvoiceItem(order_number=index + 1, **item) for index, item in enumerate(items)
        ]

from datetime import date
from enum import IntEnum

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    text,
)
from sqlalchemy.orm import relationship

from fakturace.core.database import Base
from fakturace.models.shared import UUIDType, generate_uuid, utc_now


class InvoiceStatus(IntEnum):
    DRAFT = 1
    SENT = 2
    PAID = 3
    CANCELED = 4
    OVERDUE = 5
    PARTIALLY_PAID = 6

    @property
    def label(self) -> str:
        return INVOICE_STATUS_LABELS[self]


INVOICE_STATUS_LABELS: dict[InvoiceStatus, str] = {
    InvoiceStatus.DRAFT: "Koncept",
    InvoiceStatus.SENT: "Odeslaná",
    InvoiceStatus.PAID: "Zaplacená",
    InvoiceStatus.CANCELED: "Stornovaná",
    InvoiceStatus.OVERDUE: "Po splatnosti",
    InvoiceStatus.PARTIALLY_PAID: "Částečně zaplacená",
}


# Unpaid statuses that count as overdue once the due date has passed.
OVERDUE_CANDIDATE_STATUSES = (InvoiceStatus.DRAFT.value, InvoiceStatus.SENT.value)

_ACTIVE_NUMBER_CLAUSE = "NOT is_canceled AND NOT is_deleted AND invoice_number IS NOT NULL"


class Invoice(Base):
    __tablename__ = "invoices"
    __table_args__ = (
        # One active holder per invoice number and user.
        Index(
            "uq_invoices_user_number_active",
            "user_id",
            "invoice_number",
            unique=True,
            sqlite_where=text(_ACTIVE_NUMBER_CLAUSE),
            postgresql_where=text(_ACTIVE_NUMBER_CLAUSE),
        ),
    )

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    user_id = Column(
        UUIDType, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    client_id = Column(
        UUIDType, ForeignKey("clients.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    status_id = Column(Integer, nullable=False, default=InvoiceStatus.DRAFT.value, index=True)
    invoice_number = Column(String(50), nullable=True, index=True)

    issue_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=False)
    payment_date = Column(Date, nullable=True)

    total_amount = Column(Numeric(12, 2), nullable=False, default=0)
    currency = Column(String(3), nullable=False, default="CZK")

    is_paid = Column(Boolean, nullable=False, default=False)
    is_canceled = Column(Boolean, nullable=False, default=False)
    is_deleted = Column(Boolean, nullable=False, default=False)

    due_term_id = Column(Integer, ForeignKey("due_terms.id"), nullable=True)
    payment_type_id = Column(Integer, ForeignKey("payment_types.id"), nullable=True)
    note = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    items = relationship(
        "InvoiceItem",
        back_populates="invoice",
        order_by="InvoiceItem.order_number",
        cascade="all, delete-orphan",
    )
    client = relationship("Client", lazy="joined")

    @property
    def status(self) -> InvoiceStatus:
        return InvoiceStatus(self.status_id)

    @property
    def status_label(self) -> str:
        return self.status.label

    @property
    def is_overdue(self) -> bool:
        """Overdue is derived at read time and never stored."""
        return self.status_id in OVERDUE_CANDIDATE_STATUSES and self.due_date < date.today()


class InvoiceItem(Base):
    __tablename__ = "invoice_items"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    invoice_id = Column(
        UUIDType, ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True
    )
    description = Column(String(500), nullable=False)
    quantity = Column(Numeric(12, 3), nullable=False, default=1)
    unit_price = Column(Numeric(12, 2), nullable=False, default=0)
    unit_id = Column(Integer, ForeignKey("units.id"), nullable=True)
    order_number = Column(Integer, nullable=False, default=1)

    invoice = relationship("Invoice", back_populates="items")

from datetime import date, datetime
from decimal import Decimal
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field

from fakturace.models.invoice import InvoiceStatus

Currency = Literal["CZK", "EUR"]


class InvoiceItemCreate(BaseModel):
    description: str = Field(..., min_length=1, max_length=500)
    quantity: Decimal = Field(default=Decimal("1"), gt=0)
    unit_price: Decimal = Field(default=Decimal("0"), ge=0)
    unit_id: int | None = None


class InvoiceCreate(BaseModel):
    client_id: UUID
    issue_date: date
    due_term_id: int | None = None
    payment_type_id: int | None = None
    currency: Currency = "CZK"
    note: str | None = None
    items: list[InvoiceItemCreate] = Field(default_factory=list)


class InvoiceUpdate(BaseModel):
    client_id: UUID | None = None
    issue_date: date | None = None
    due_term_id: int | None = None
    payment_type_id: int | None = None
    currency: Currency | None = None
    note: str | None = None
    invoice_number: str | None = Field(default=None, max_length=50)
    # When present the item list replaces the stored one wholesale.
    items: list[InvoiceItemCreate] | None = None


class InvoiceStatusChange(BaseModel):
    status_id: InvoiceStatus


class MarkPaidRequest(BaseModel):
    payment_date: date | None = None


class InvoiceItemResponse(BaseModel):
    id: UUID
    description: str
    quantity: Decimal
    unit_price: Decimal
    unit_id: int | None
    order_number: int

    model_config = {"from_attributes": True}


class InvoiceClientSummary(BaseModel):
    id: UUID
    name: str
    company_id: str | None = None

    model_config = {"from_attributes": True}


class InvoiceResponse(BaseModel):
    id: UUID
    client_id: UUID
    client: InvoiceClientSummary | None = None
    status_id: int
    status_label: str
    invoice_number: str | None
    issue_date: date
    due_date: date
    payment_date: date | None
    total_amount: Decimal
    currency: str
    is_paid: bool
    is_canceled: bool
    is_overdue: bool
    due_term_id: int | None
    payment_type_id: int | None
    note: str | None
    items: list[InvoiceItemResponse] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class InvoiceStatistics(BaseModel):
    total: int
    paid: int
    unpaid: int
    canceled: int
    overdue: int
    total_revenue: Decimal
    unpaid_amount: Decimal


class SpaydResponse(BaseModel):
    spayd: str
    iban: str
    amount: Decimal
    currency: str
    variable_symbol: str | None

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, HttpUrl

from fakturace.schemas.common import Address


class DefaultSettings(BaseModel):
    currency: Literal["CZK", "EUR"] = "CZK"
    language: Literal["cs", "en"] = "cs"
    due_term_id: int | None = None
    payment_type_id: int | None = None
    footer_text: str | None = None
    invoice_text: str | None = None


class ProfileResponse(BaseModel):
    id: UUID
    name: str
    contact_email: str
    role: str
    company_id: str | None
    vat_number: str | None
    contact_phone: str | None
    contact_website: str | None
    bank_account: str | None
    billing_details: Address | None
    default_settings: DefaultSettings | None
    activated_at: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}


class ProfileUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=2, max_length=255)
    contact_email: EmailStr | None = None
    company_id: str | None = Field(default=None, max_length=20)
    vat_number: str | None = Field(default=None, max_length=20)
    contact_phone: str | None = Field(default=None, max_length=50)
    contact_website: HttpUrl | None = None
    bank_account: str | None = Field(default=None, max_length=50)
    billing_details: Address | None = None
    default_settings: DefaultSettings | None = None

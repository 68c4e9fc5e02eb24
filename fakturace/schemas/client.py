from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from fakturace.schemas.common import Address


def _blank_to_none(value: object) -> object:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class ClientCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=255)
    company_id: str | None = Field(default=None, max_length=20)
    vat_number: str | None = Field(default=None, max_length=20)
    address: Address | None = None
    contact_email: EmailStr | None = None
    contact_phone: str | None = Field(default=None, max_length=50)
    note: str | None = None

    @field_validator("company_id", "vat_number", "contact_email", "contact_phone", mode="before")
    @classmethod
    def _empty_strings(cls, value: object) -> object:
        return _blank_to_none(value)


class ClientUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=2, max_length=255)
    company_id: str | None = Field(default=None, max_length=20)
    vat_number: str | None = Field(default=None, max_length=20)
    address: Address | None = None
    contact_email: EmailStr | None = None
    contact_phone: str | None = Field(default=None, max_length=50)
    note: str | None = None

    @field_validator("company_id", "vat_number", "contact_email", "contact_phone", mode="before")
    @classmethod
    def _empty_strings(cls, value: object) -> object:
        return _blank_to_none(value)


class ClientResponse(BaseModel):
    id: UUID
    name: str
    company_id: str | None
    vat_number: str | None
    address: Address | None
    contact_email: str | None
    contact_phone: str | None
    note: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

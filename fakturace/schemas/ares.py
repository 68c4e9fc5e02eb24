from pydantic import BaseModel, Field

from fakturace.schemas.common import Address


class AresSearchRequest(BaseModel):
    query: str = Field(..., min_length=1, max_length=255)


class AresCompany(BaseModel):
    name: str
    company_id: str
    vat_number: str | None = None
    address: Address
    legal_form: str | None = None
    contact_email: str | None = None
    contact_phone: str | None = None

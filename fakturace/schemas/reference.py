from pydantic import BaseModel


class DueTermResponse(BaseModel):
    id: int
    name: str
    days_count: int

    model_config = {"from_attributes": True}


class PaymentTypeResponse(BaseModel):
    id: int
    name: str

    model_config = {"from_attributes": True}


class UnitResponse(BaseModel):
    id: int
    name: str
    abbreviation: str | None

    model_config = {"from_attributes": True}

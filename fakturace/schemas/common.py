from typing import Any, Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")

DEFAULT_COUNTRY = "Česká republika"


class ApiResponse(BaseModel, Generic[T]):
    """Success envelope returned by every endpoint."""

    success: bool = True
    data: T | None = None
    message: str | None = None


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    errorCode: str | None = None  # noqa: N815


class Address(BaseModel):
    street: str | None = None
    house_number: str | None = None
    city: str | None = None
    zip: str | None = None
    country: str = DEFAULT_COUNTRY


def ok(data: Any = None, message: str | None = None) -> dict[str, Any]:
    return {"success": True, "data": data, "message": message}

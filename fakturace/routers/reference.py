from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from fakturace.core.database import get_db
from fakturace.repositories.reference_repository import ReferenceRepository
from fakturace.schemas.common import ApiResponse, ok
from fakturace.schemas.reference import DueTermResponse, PaymentTypeResponse, UnitResponse

router = APIRouter()


@router.get("/due-terms", response_model=ApiResponse[list[DueTermResponse]], summary="Due terms")
async def list_due_terms(db: Session = Depends(get_db)) -> dict[str, Any]:
    return ok(data=ReferenceRepository(db).get_due_terms())


@router.get(
    "/payment-types",
    response_model=ApiResponse[list[PaymentTypeResponse]],
    summary="Payment types",
)
async def list_payment_types(db: Session = Depends(get_db)) -> dict[str, Any]:
    return ok(data=ReferenceRepository(db).get_payment_types())


@router.get("/units", response_model=ApiResponse[list[UnitResponse]], summary="Units")
async def list_units(db: Session = Depends(get_db)) -> dict[str, Any]:
    return ok(data=ReferenceRepository(db).get_units())

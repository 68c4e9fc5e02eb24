from typing import Any

from fastapi import APIRouter, Depends

from fakturace.core.auth import get_current_user
from fakturace.models.user import User
from fakturace.schemas.ares import AresCompany, AresSearchRequest
from fakturace.schemas.common import ApiResponse, ok
from fakturace.services.ares_service import AresService

router = APIRouter()


@router.post(
    "/search",
    response_model=ApiResponse[list[AresCompany]],
    summary="Search the company register",
    responses={
        400: {"description": "Empty query"},
        502: {"description": "ARES is unavailable"},
    },
)
async def search_companies(
    data: AresSearchRequest,
    user: User = Depends(get_current_user),
) -> dict[str, Any]:
    return ok(data=AresService().search(data.query))

from typing import Any

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from fakturace.core.auth import get_current_user
from fakturace.core.database import get_db
from fakturace.models.user import User
from fakturace.repositories.subscription_repository import PlanRepository
from fakturace.schemas.common import ApiResponse, ok
from fakturace.schemas.subscription import PlanResponse, UpgradeRequest, UpgradeResponse
from fakturace.services.audit_service import AuditService
from fakturace.services.subscription_service import SubscriptionService

router = APIRouter()


@router.get("/plans", response_model=ApiResponse[list[PlanResponse]], summary="Available plans")
async def list_plans(db: Session = Depends(get_db)) -> dict[str, Any]:
    return ok(data=PlanRepository(db).get_all(active_only=True))


@router.post(
    "/upgrade",
    response_model=ApiResponse[UpgradeResponse],
    summary="Change plan",
    responses={
        400: {"description": "Already on this plan, or usage exceeds the target plan limit"},
        404: {"description": "Plan not found"},
    },
)
async def upgrade(
    data: UpgradeRequest,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> dict[str, Any]:
    """Switch plans; paid plans return bank transfer instructions."""
    result = SubscriptionService(db).upgrade(user.id, data.plan_id, data.billing_cycle)
    subscription = result["subscription"]
    AuditService(db).log(
        "subscription.upgrade",
        "subscription",
        subscription.id,
        user_id=user.id,
        request=request,
        metadata={"plan_id": data.plan_id, "billing_cycle": data.billing_cycle.value},
    )
    if result["payment"] is None:
        return ok(data=result, message="Plán byl změněn")
    return ok(data=result, message="Předplatné čeká na platbu")

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.orm import Session

from fakturace.core.auth import require_admin
from fakturace.core.database import get_db
from fakturace.models.subscription import SubscriptionStatus
from fakturace.models.user import User
from fakturace.repositories.user_repository import UserRepository
from fakturace.schemas.admin import (
    ActivationResponse,
    AdminSubscriptionCreate,
    AdminSubscriptionUpdate,
    AdminUserResponse,
    CancelFallbackResponse,
    CancelSubscriptionRequest,
    ChangePlanRequest,
    DeactivateRequest,
    PendingPaymentResponse,
    PlanStatsResponse,
    SubscriptionActionRequest,
    SubscriptionDetailResponse,
)
from fakturace.schemas.auth import UserResponse
from fakturace.schemas.common import ApiResponse, ok
from fakturace.schemas.subscription import StatusHistoryResponse, SubscriptionResponse
from fakturace.services.admin_service import AdminService
from fakturace.services.audit_service import AuditService

router = APIRouter()

ADMIN_ONLY = {403: {"description": "Administrator role required"}}


def _audit(
    db: Session,
    request: Request,
    admin: User,
    action: str,
    entity_type: str,
    entity_id: Any,
    **metadata: Any,
) -> None:
    AuditService(db).log(
        action,
        entity_type,
        entity_id,
        user_id=admin.id,
        request=request,
        metadata={key: str(value) for key, value in metadata.items() if value is not None}
        or None,
    )


# -- overview ---------------------------------------------------------------


@router.get(
    "/users",
    response_model=ApiResponse[list[AdminUserResponse]],
    summary="Users with invoice and subscription statistics",
    responses=ADMIN_ONLY,
)
async def list_users(
    response: Response,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
) -> dict[str, Any]:
    response.headers["X-Total-Count"] = str(UserRepository(db).count())
    return ok(data=AdminService(db).users_with_stats(skip=skip, limit=limit))


@router.get(
    "/plans",
    response_model=ApiResponse[list[PlanStatsResponse]],
    summary="Plan statistics",
    responses=ADMIN_ONLY,
)
async def plan_statistics(
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
) -> dict[str, Any]:
    return ok(data=AdminService(db).plan_stats())


@router.get(
    "/pending-payments",
    response_model=ApiResponse[list[PendingPaymentResponse]],
    summary="Subscriptions waiting for a bank transfer",
    responses=ADMIN_ONLY,
)
async def pending_payments(
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
) -> dict[str, Any]:
    return ok(data=AdminService(db).pending_payments())


# -- subscriptions ------------------------------------------------------------


@router.get(
    "/subscriptions",
    response_model=ApiResponse[list[SubscriptionResponse]],
    summary="List subscriptions",
    responses=ADMIN_ONLY,
)
async def list_subscriptions(
    status: SubscriptionStatus | None = Query(default=None),
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
) -> dict[str, Any]:
    return ok(data=AdminService(db).list_subscriptions(status.value if status else None))


@router.post(
    "/subscriptions",
    response_model=ApiResponse[SubscriptionResponse],
    status_code=201,
    summary="Assign a plan to a user",
    responses={**ADMIN_ONLY, 400: {"description": "Usage exceeds the plan limit"}},
)
async def create_subscription(
    data: AdminSubscriptionCreate,
    request: Request,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
) -> dict[str, Any]:
    subscription = AdminService(db).assign_plan(
        admin, data.user_id, data.plan_id, data.billing_cycle, data.status, data.reason
    )
    _audit(
        db,
        request,
        admin,
        "admin.subscription.create",
        "subscription",
        subscription.id,
        user_id=data.user_id,
        plan_id=data.plan_id,
    )
    return ok(data=subscription, message="Předplatné bylo přiřazeno")


@router.post(
    "/subscriptions/activate",
    response_model=ApiResponse[ActivationResponse],
    summary="Activate a subscription after payment",
    responses={
        **ADMIN_ONLY,
        400: {"description": "Subscription is not pending payment or canceled"},
        404: {"description": "Subscription not found"},
    },
)
async def activate_subscription(
    data: SubscriptionActionRequest,
    request: Request,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
) -> dict[str, Any]:
    """Confirm a received bank transfer and record a manual payment."""
    result = AdminService(db).activate_pending(
        admin, data.subscription_id, user_id=data.user_id, reason=data.reason
    )
    _audit(
        db,
        request,
        admin,
        "admin.subscription.activate",
        "subscription",
        data.subscription_id,
        payment_id=result["payment"].id,
    )
    return ok(data=result, message="Předplatné bylo aktivováno")


@router.post(
    "/subscriptions/cancel",
    response_model=ApiResponse[CancelFallbackResponse],
    summary="Cancel a user's subscription and fall back to Free",
    responses={**ADMIN_ONLY, 404: {"description": "User not found"}},
)
async def cancel_user_subscription(
    data: CancelSubscriptionRequest,
    request: Request,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
) -> dict[str, Any]:
    result = AdminService(db).cancel_with_fallback(admin, data.user_id, data.reason)
    _audit(
        db,
        request,
        admin,
        "admin.subscription.cancel",
        "subscription",
        result["canceled"].id,
        user_id=data.user_id,
        outcome=result["action"],
    )
    return ok(data=result, message="Předplatné bylo zrušeno")


@router.get(
    "/subscriptions/{subscription_id}",
    response_model=ApiResponse[SubscriptionDetailResponse],
    summary="Subscription detail",
    responses={**ADMIN_ONLY, 404: {"description": "Subscription not found"}},
)
async def get_subscription(
    subscription_id: UUID,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
) -> dict[str, Any]:
    return ok(data=AdminService(db).subscription_detail(subscription_id))


@router.put(
    "/subscriptions/{subscription_id}",
    response_model=ApiResponse[SubscriptionResponse],
    summary="Update subscription",
    responses={**ADMIN_ONLY, 404: {"description": "Subscription not found"}},
)
async def update_subscription(
    subscription_id: UUID,
    data: AdminSubscriptionUpdate,
    request: Request,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
) -> dict[str, Any]:
    subscription = AdminService(db).update_subscription(
        admin,
        subscription_id,
        plan_id=data.plan_id,
        billing_cycle=data.billing_cycle,
        status=data.status,
        extend=data.extend_period,
        reason=data.reason,
    )
    _audit(db, request, admin, "admin.subscription.update", "subscription", subscription_id)
    return ok(data=subscription, message="Předplatné bylo upraveno")


@router.delete(
    "/subscriptions/{subscription_id}",
    response_model=ApiResponse[SubscriptionResponse],
    summary="Cancel subscription",
    responses={
        **ADMIN_ONLY,
        400: {"description": "Subscription is already canceled"},
        404: {"description": "Subscription not found"},
    },
)
async def cancel_subscription(
    subscription_id: UUID,
    request: Request,
    reason: str | None = Query(default=None),
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
) -> dict[str, Any]:
    subscription = AdminService(db).cancel_subscription(admin, subscription_id, reason)
    _audit(db, request, admin, "admin.subscription.cancel", "subscription", subscription_id)
    return ok(data=subscription, message="Předplatné bylo zrušeno")


@router.get(
    "/subscriptions/{subscription_id}/history",
    response_model=ApiResponse[list[StatusHistoryResponse]],
    summary="Subscription status history",
    responses={**ADMIN_ONLY, 404: {"description": "Subscription not found"}},
)
async def subscription_history(
    subscription_id: UUID,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
) -> dict[str, Any]:
    return ok(data=AdminService(db).subscription_history(subscription_id))


# -- user management ----------------------------------------------------------


@router.post(
    "/users/{user_id}/deactivate",
    response_model=ApiResponse[UserResponse],
    summary="Deactivate or reactivate a user",
    responses={**ADMIN_ONLY, 400: {"description": "Own account or no state change"}},
)
async def deactivate_user(
    user_id: UUID,
    request: Request,
    data: DeactivateRequest | None = None,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
) -> dict[str, Any]:
    """Without a body the current state is toggled."""
    user = AdminService(db).set_deactivated(
        admin, user_id, data.deactivate if data is not None else None
    )
    deactivated = user.deactivated_at is not None
    action = "admin.user.deactivate" if deactivated else "admin.user.reactivate"
    _audit(db, request, admin, action, "user", user_id)
    message = "Uživatel byl deaktivován" if deactivated else "Uživatel byl znovu aktivován"
    return ok(data=user, message=message)


@router.post(
    "/users/{user_id}/soft-delete",
    response_model=ApiResponse[UserResponse],
    summary="Mark a deactivated user as deleted",
    responses={**ADMIN_ONLY, 400: {"description": "User is not deactivated or already deleted"}},
)
async def soft_delete_user(
    user_id: UUID,
    request: Request,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
) -> dict[str, Any]:
    user = AdminService(db).soft_delete_user(admin, user_id)
    _audit(db, request, admin, "admin.user.soft_delete", "user", user_id)
    return ok(data=user, message="Uživatel byl smazán")


@router.post(
    "/users/{user_id}/restore",
    response_model=ApiResponse[UserResponse],
    summary="Restore a deleted user",
    responses={**ADMIN_ONLY, 400: {"description": "User is not deleted"}},
)
async def restore_user(
    user_id: UUID,
    request: Request,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
) -> dict[str, Any]:
    user = AdminService(db).restore_user(user_id)
    _audit(db, request, admin, "admin.user.restore", "user", user_id)
    return ok(data=user, message="Uživatel byl obnoven")


@router.post(
    "/users/{user_id}/change-plan",
    response_model=ApiResponse[SubscriptionResponse],
    summary="Change a user's plan",
    responses={
        **ADMIN_ONLY,
        400: {"description": "Usage exceeds the plan limit"},
        404: {"description": "User or plan not found"},
    },
)
async def change_user_plan(
    user_id: UUID,
    data: ChangePlanRequest,
    request: Request,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
) -> dict[str, Any]:
    subscription = AdminService(db).assign_plan(
        admin, user_id, data.plan_id, data.billing_cycle, reason=data.reason
    )
    _audit(
        db,
        request,
        admin,
        "admin.user.change_plan",
        "subscription",
        subscription.id,
        user_id=user_id,
        plan_id=data.plan_id,
    )
    return ok(data=subscription, message="Plán byl změněn")

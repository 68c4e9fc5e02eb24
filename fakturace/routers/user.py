from typing import Any

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from fakturace.core.auth import get_current_user
from fakturace.core.config import settings
from fakturace.core.database import get_db
from fakturace.core.errors import ConflictError, ValidationError
from fakturace.models.user import User
from fakturace.repositories.user_repository import UserRepository
from fakturace.schemas.common import ApiResponse, ok
from fakturace.schemas.subscription import SubscriptionSummary
from fakturace.schemas.user import ProfileResponse, ProfileUpdate
from fakturace.services.audit_service import AuditService
from fakturace.services.gdpr_service import GdprService
from fakturace.services.spayd import is_valid_czech_account
from fakturace.services.subscription_service import SubscriptionService
from fakturace.services.validation import is_valid_ico

router = APIRouter()

_PROFILE_AUDIT_EXCLUDE = {"default_settings"}


@router.get(
    "/subscription",
    response_model=ApiResponse[SubscriptionSummary],
    summary="Current plan and usage",
)
async def get_subscription(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> dict[str, Any]:
    return ok(data=SubscriptionService(db).get_status(user.id))


@router.get("/profile", response_model=ApiResponse[ProfileResponse], summary="Get profile")
async def get_profile(user: User = Depends(get_current_user)) -> dict[str, Any]:
    return ok(data=user)


@router.put(
    "/profile",
    response_model=ApiResponse[ProfileResponse],
    summary="Update profile",
    responses={
        400: {"description": "Invalid IČO or bank account"},
        409: {"description": "E-mail already used by another account"},
    },
)
async def update_profile(
    data: ProfileUpdate,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> dict[str, Any]:
    """Update the issuer details printed on invoices."""
    fields = data.model_dump(mode="json", exclude_unset=True)
    if fields.get("company_id") and not is_valid_ico(fields["company_id"]):
        raise ValidationError("Neplatné IČO")
    if fields.get("bank_account") and not is_valid_czech_account(fields["bank_account"]):
        raise ValidationError("Neplatné číslo bankovního účtu")

    repo = UserRepository(db)
    if "contact_email" in fields:
        if fields["contact_email"] is None:
            raise ValidationError("Email je povinný")
        fields["contact_email"] = fields["contact_email"].strip().lower()
        existing = repo.get_by_email(fields["contact_email"])
        if existing is not None and existing.id != user.id:
            raise ConflictError("Tento email je již používán")

    old_data = {
        key: getattr(user, key) for key in fields if key not in _PROFILE_AUDIT_EXCLUDE
    }
    user = repo.update(user, **fields)
    AuditService(db).log_update(
        "user",
        user.id,
        user.id,
        old_data,
        {key: getattr(user, key) for key in old_data},
        request=request,
    )
    return ok(data=user, message="Profil byl uložen")


@router.get(
    "/gdpr/export",
    response_model=ApiResponse[dict[str, Any]],
    summary="Export personal data",
)
async def gdpr_export(
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> dict[str, Any]:
    data = GdprService(db).export(user.id)
    AuditService(db).log("gdpr.export", "user", user.id, user_id=user.id, request=request)
    return ok(data=data)


@router.post(
    "/gdpr/delete",
    response_model=ApiResponse[None],
    summary="Erase personal data",
)
async def gdpr_delete(
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> dict[str, Any]:
    """Anonymise the account and sign out; invoices are kept for accounting."""
    user_id = user.id
    GdprService(db).purge(user_id)
    AuditService(db).log("gdpr.delete", "user", user_id, user_id=user_id, request=request)
    response.delete_cookie(settings.SESSION_COOKIE_NAME, path="/")
    return ok(message="Osobní údaje byly smazány")

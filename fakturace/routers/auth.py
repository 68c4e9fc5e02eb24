from typing import Any

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from fakturace.core.config import settings
from fakturace.core.database import get_db
from fakturace.core.rate_limiter import (
    client_ip,
    login_limiter,
    password_reset_limiter,
    register_limiter,
)
from fakturace.schemas.auth import (
    EmailRequest,
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    RegisterResponse,
    ResetPasswordRequest,
    UserResponse,
)
from fakturace.schemas.common import ApiResponse, ok
from fakturace.services.audit_service import AuditService
from fakturace.services.auth_service import REGISTRATION_SUCCESS, AuthService

router = APIRouter()


@router.post(
    "/register",
    response_model=ApiResponse[RegisterResponse],
    summary="Register a new account",
    responses={
        400: {"description": "Missing or invalid fields, or e-mail already registered"},
        429: {"description": "Too many registrations from this address"},
    },
)
async def register(
    data: RegisterRequest,
    request: Request,
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    """Create an account and send the activation e-mail."""
    register_limiter.check(client_ip(request))
    result = await AuthService(db).register(data)
    user = result["user"]
    if not isinstance(user, dict):
        AuditService(db).log("auth.register", "user", user.id, user_id=user.id, request=request)
    return ok(data=result, message=REGISTRATION_SUCCESS)


@router.post(
    "/login",
    response_model=ApiResponse[LoginResponse],
    summary="Sign in",
    responses={
        400: {"description": "Missing e-mail or password"},
        401: {"description": "Wrong credentials, inactive or deactivated account"},
        429: {"description": "Too many login attempts"},
    },
)
async def login(
    data: LoginRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    """Check credentials and set the session cookie."""
    login_limiter.check(client_ip(request))
    user, token = AuthService(db).login(data.contact_email, data.password)
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=settings.SESSION_DURATION_DAYS * 24 * 3600,
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="lax",
        path="/",
    )
    AuditService(db).log("auth.login", "user", user.id, user_id=user.id, request=request)
    return ok(data={"user": user, "token": token})


@router.post("/logout", response_model=ApiResponse[None], summary="Sign out")
async def logout(response: Response) -> dict[str, Any]:
    response.delete_cookie(settings.SESSION_COOKIE_NAME, path="/")
    return ok(message="Odhlášení proběhlo úspěšně")


@router.get(
    "/verify-email/{token}",
    response_model=ApiResponse[UserResponse],
    summary="Activate an account",
    responses={400: {"description": "Unknown or expired token"}},
)
async def verify_email(
    token: str,
    request: Request,
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    user, activated = AuthService(db).verify_email(token)
    if not activated:
        return ok(data=user, message="Účet je již aktivován")
    AuditService(db).log("auth.verify_email", "user", user.id, user_id=user.id, request=request)
    return ok(data=user, message="Účet byl úspěšně aktivován")


@router.post(
    "/resend-verification",
    response_model=ApiResponse[None],
    summary="Send the activation e-mail again",
)
async def resend_verification(
    data: EmailRequest,
    request: Request,
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    password_reset_limiter.check(f"resend:{client_ip(request)}")
    message = await AuthService(db).resend_verification(data.contact_email)
    return ok(message=message)


@router.post(
    "/reset-password-request",
    response_model=ApiResponse[None],
    summary="Request a password reset link",
    responses={429: {"description": "Too many reset requests"}},
)
async def reset_password_request(
    data: EmailRequest,
    request: Request,
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    """Answers the same whether or not the account exists."""
    password_reset_limiter.check(client_ip(request))
    message = await AuthService(db).request_password_reset(data.contact_email)
    return ok(message=message)


@router.post(
    "/reset-password",
    response_model=ApiResponse[None],
    summary="Set a new password",
    responses={400: {"description": "Invalid password or unknown/expired token"}},
)
async def reset_password(
    data: ResetPasswordRequest,
    request: Request,
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    user = AuthService(db).reset_password(data.token, data.password, data.password_confirm)
    AuditService(db).log("auth.password_reset", "user", user.id, user_id=user.id, request=request)
    return ok(message="Heslo bylo úspěšně změněno")

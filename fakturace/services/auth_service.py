"""Registration, e-mail verification, login and password reset."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy.orm import Session

from fakturace.core.config import settings
from fakturace.core.errors import AuthenticationError, NotFoundError, ValidationError
from fakturace.core.security import (
    create_session_token,
    generate_token,
    hash_password,
    verify_password,
)
from fakturace.models.auth_token import EmailVerificationToken, PasswordResetToken
from fakturace.models.shared import as_utc, utc_now
from fakturace.models.user import User, UserRole
from fakturace.repositories.auth_token_repository import AuthTokenRepository
from fakturace.repositories.user_repository import UserRepository
from fakturace.schemas.auth import RegisterRequest
from fakturace.services.email_service import EmailService
from fakturace.services.subscription_service import SubscriptionService
from fakturace.services.validation import MIN_PASSWORD_LENGTH, is_valid_email

logger = logging.getLogger(__name__)

REGISTRATION_SUCCESS = "Registrace proběhla úspěšně. Zkontrolujte svůj email pro aktivaci účtu."
INVALID_CREDENTIALS = "Neplatný email nebo heslo"
RESEND_NEUTRAL = "Pokud účet existuje a není aktivován, byl odeslán aktivační email"
RESET_NEUTRAL = "Pokud účet existuje, byl odeslán reset hesla"
PASSWORD_TOO_SHORT = f"Heslo musí mít alespoň {MIN_PASSWORD_LENGTH} znaků"


def _as_int(value: Any) -> int | None:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


def is_bot_submission(data: RegisterRequest) -> bool:
    """Filled honeypot or a wrong answer to the arithmetic question."""
    if data.my_name and data.my_name.strip():
        return True
    first, second, answer = (
        _as_int(data.math_num1),
        _as_int(data.math_num2),
        _as_int(data.math_answer),
    )
    if not first or not second or answer is None:
        return True
    return answer != first + second


class AuthService:
    def __init__(
        self,
        db: Session,
        email_service: EmailService | None = None,
        now: datetime | None = None,
    ):
        self.db = db
        self.users = UserRepository(db)
        self.verification_tokens = AuthTokenRepository(db, EmailVerificationToken)
        self.reset_tokens = AuthTokenRepository(db, PasswordResetToken)
        self.email = email_service or EmailService()
        self._now = now

    def now(self) -> datetime:
        return self._now or utc_now()

    def _issue_verification_token(self, user: User) -> str:
        token = generate_token()
        expires_at = self.now() + timedelta(hours=settings.EMAIL_VERIFICATION_TTL_HOURS)
        self.verification_tokens.replace_for_user(user.id, token, expires_at)
        return token

    async def register(self, data: RegisterRequest) -> dict[str, Any]:
        """Create an inactive account and e-mail its activation link.

        Submissions that fail the anti-bot checks get the same success answer
        without an account being created.

        Returns:
            ``{"user": ..., "email_sent": bool}``; ``user`` is a plain dict
            with ``id=None`` for a rejected bot submission.
        """
        if is_bot_submission(data):
            logger.info("Registration rejected by anti-bot check for %s", data.contact_email)
            return {
                "user": {
                    "id": None,
                    "name": data.name or "",
                    "contact_email": data.contact_email or "",
                },
                "email_sent": False,
            }

        if not data.name or not data.contact_email or not data.password:
            raise ValidationError("Všechna povinná pole musí být vyplněna")
        email = data.contact_email.strip().lower()
        if not is_valid_email(email):
            raise ValidationError("Neplatný formát emailové adresy")
        if data.password != data.password_confirm:
            raise ValidationError("Hesla se neshodují")
        if len(data.password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(PASSWORD_TOO_SHORT)
        if self.users.get_by_email(email) is not None:
            raise ValidationError("Uživatel s tímto emailem již existuje")

        role = UserRole.ADMIN if email in settings.admin_emails else UserRole.USER
        user = self.users.create(
            name=data.name.strip(),
            contact_email=email,
            password_hash=hash_password(data.password),
            company_id=(data.company_id or "").strip() or None,
            role=role,
        )
        self.users.update(
            user,
            billing_details={
                "street": "",
                "house_number": "",
                "city": "",
                "zip": "",
                "country": "Česká republika",
            },
        )
        SubscriptionService(self.db).create_free_subscription(user.id)

        token = self._issue_verification_token(user)
        email_sent = await self.email.send_verification_email(user, token)
        if not email_sent:
            logger.warning("Verification email for user %s was not sent", user.id)
        logger.info("Registered user %s", user.id)
        return {"user": user, "email_sent": email_sent}

    def verify_email(self, token: str) -> tuple[User, bool]:
        """Activate the account behind ``token``.

        Returns:
            The user and whether this call activated it (False when it was
            already active).
        """
        record = self.verification_tokens.get_by_token(token) if token else None
        if record is None:
            raise ValidationError("Neplatný nebo neexistující token")
        if as_utc(record.expires_at) < self.now():
            raise ValidationError("Token vypršel. Požádejte o nový aktivační email.")

        user = self.users.get_by_id(record.user_id)
        if user is None:
            raise NotFoundError("Uživatel nenalezen")
        if user.activated_at is not None:
            return user, False

        self.users.update(user, activated_at=self.now())
        self.verification_tokens.delete_for_user(user.id)
        logger.info("Activated user %s", user.id)
        return user, True

    async def resend_verification(self, contact_email: str | None) -> str:
        if not contact_email:
            raise ValidationError("Email je povinný")
        user = self.users.get_by_email(contact_email)
        if user is None:
            return RESEND_NEUTRAL
        if user.activated_at is not None:
            return "Účet je již aktivován. Můžete se přihlásit."
        token = self._issue_verification_token(user)
        await self.email.send_verification_email(user, token)
        return RESEND_NEUTRAL

    def login(self, contact_email: str | None, password: str | None) -> tuple[User, str]:
        """Check credentials and sign a session token.

        Raises:
            ValidationError: Missing e-mail or password.
            AuthenticationError: Wrong credentials, or an account that is not
                activated (``ACCOUNT_NOT_ACTIVATED``), deactivated or deleted
                (``ACCOUNT_DEACTIVATED``).
        """
        if not contact_email or not password:
            raise ValidationError("Email a heslo jsou povinné")
        user = self.users.get_by_email(contact_email)
        if user is None or not verify_password(password, str(user.password_hash)):
            raise AuthenticationError(INVALID_CREDENTIALS)
        if user.activated_at is None:
            raise AuthenticationError(
                "Účet není aktivován. Zkontrolujte svůj email nebo znovu pošlete aktivační email.",
                error_code="ACCOUNT_NOT_ACTIVATED",
            )
        if not user.is_active:
            raise AuthenticationError(
                "Váš účet byl deaktivován. Kontaktujte administrátora.",
                error_code="ACCOUNT_DEACTIVATED",
            )

        self.users.update(user, last_login=self.now())
        return user, create_session_token(user.id, str(user.role), now=self.now())

    async def request_password_reset(self, contact_email: str | None) -> str:
        """Mail a reset link; the answer is the same whether or not the account exists."""
        if not contact_email:
            raise ValidationError("Email je povinný")
        user = self.users.get_by_email(contact_email)
        if user is None or not user.is_active:
            return RESET_NEUTRAL
        token = generate_token()
        expires_at = self.now() + timedelta(hours=settings.PASSWORD_RESET_TTL_HOURS)
        self.reset_tokens.replace_for_user(user.id, token, expires_at)
        await self.email.send_password_reset_email(user, token)
        return RESET_NEUTRAL

    def reset_password(
        self, token: str | None, password: str | None, password_confirm: str | None = None
    ) -> User:
        if not token or not password:
            raise ValidationError("Token a heslo jsou povinné")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(PASSWORD_TOO_SHORT)
        if password_confirm is not None and password != password_confirm:
            raise ValidationError("Hesla se neshodují")

        record = self.reset_tokens.get_by_token(token)
        if record is None:
            raise ValidationError("Neplatný nebo expirovaný token")
        if as_utc(record.expires_at) < self.now():
            self.reset_tokens.delete(record)
            raise ValidationError("Token vypršel, požadujte nový reset hesla")

        user = self.users.get_by_id(record.user_id)
        if user is None:
            raise NotFoundError("Uživatel nenalezen")
        self.users.update(user, password_hash=hash_password(password))
        self.reset_tokens.delete_for_user(user.id)
        logger.info("Password reset for user %s", user.id)
        return user

from uuid import UUID

import jwt
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from fakturace.core.config import settings
from fakturace.core.database import get_db
from fakturace.core.errors import AuthenticationError, AuthorizationError
from fakturace.core.security import decode_session_token
from fakturace.models.user import User, UserRole
from fakturace.repositories.user_repository import UserRepository


def _session_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization")
    if auth_header:
        if not auth_header.startswith("Bearer "):
            raise AuthenticationError("Neplatná hlavička Authorization")
        return auth_header[7:] or None
    return request.cookies.get(settings.SESSION_COOKIE_NAME)


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    """Resolve the signed-in user from the session cookie or a Bearer token.

    Deactivated and deleted accounts are rejected, which logs them out. The
    role claim of the session is kept on ``request.state.session_role``.
    """
    token = _session_token(request)
    if not token:
        raise AuthenticationError()

    try:
        payload = decode_session_token(token)
        user_id = UUID(payload["sub"])
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Relace vypršela, přihlaste se znovu") from None
    except (jwt.InvalidTokenError, KeyError, ValueError):
        raise AuthenticationError("Neplatná relace") from None

    user = UserRepository(db).get_by_id(user_id)
    if user is None or not user.is_active:
        raise AuthenticationError()
    request.state.session_role = payload.get("role")
    return user


def require_admin(request: Request, user: User = Depends(get_current_user)) -> User:
    """Admin access follows the role the session was signed with."""
    if request.state.session_role != UserRole.ADMIN.value:
        raise AuthorizationError()
    return user

from datetime import datetime
from uuid import UUID

from sqlalchemy.orm import Session

from fakturace.models.auth_token import EmailVerificationToken, PasswordResetToken

TokenModel = type[EmailVerificationToken] | type[PasswordResetToken]


class AuthTokenRepository:
    """Single-use tokens for e-mail verification and password reset."""

    def __init__(self, db: Session, model: TokenModel):
        self.db = db
        self.model = model

    def replace_for_user(
        self, user_id: UUID, token: str, expires_at: datetime
    ) -> EmailVerificationToken | PasswordResetToken:
        """Drop the user's previous tokens and store a new one."""
        self.db.query(self.model).filter(self.model.user_id == user_id).delete()
        record = self.model(user_id=user_id, token=token, expires_at=expires_at)
        self.db.add(record)
        self.db.commit()
        self.db.refresh(record)
        return record

    def get_by_token(self, token: str) -> EmailVerificationToken | PasswordResetToken | None:
        return self.db.query(self.model).filter(self.model.token == token).first()

    def get_for_user(self, user_id: UUID) -> list[EmailVerificationToken | PasswordResetToken]:
        return self.db.query(self.model).filter(self.model.user_id == user_id).all()

    def delete(self, record: EmailVerificationToken | PasswordResetToken) -> None:
        self.db.delete(record)
        self.db.commit()

    def delete_for_user(self, user_id: UUID) -> int:
        deleted = self.db.query(self.model).filter(self.model.user_id == user_id).delete()
        self.db.commit()
        return int(deleted)

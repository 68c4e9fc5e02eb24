from typing import Any
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from fakturace.core.sorting import apply_order_by
from fakturace.models.user import User, UserRole


class UserRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, user_id: UUID) -> User | None:
        return self.db.query(User).filter(User.id == user_id).first()

    def get_by_email(self, email: str) -> User | None:
        return (
            self.db.query(User)
            .filter(func.lower(User.contact_email) == email.strip().lower())
            .first()
        )

    def get_all(
        self,
        skip: int = 0,
        limit: int = 100,
        include_deleted: bool = True,
        order_by: str | None = None,
    ) -> list[User]:
        query = self.db.query(User)
        if not include_deleted:
            query = query.filter(User.deleted_at.is_(None))
        query = apply_order_by(query, User, order_by)
        return query.offset(skip).limit(limit).all()

    def count(self) -> int:
        return self.db.query(func.count(User.id)).scalar() or 0

    def create(
        self,
        *,
        name: str,
        contact_email: str,
        password_hash: str,
        company_id: str | None = None,
        role: UserRole = UserRole.USER,
    ) -> User:
        user = User(
            name=name,
            contact_email=contact_email.strip().lower(),
            password_hash=password_hash,
            company_id=company_id,
            role=role.value,
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user

    def update(self, user: User, **fields: Any) -> User:
        for key, value in fields.items():
            setattr(user, key, value)
        self.db.commit()
        self.db.refresh(user)
        return user

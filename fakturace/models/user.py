from enum import Enum

from sqlalchemy import JSON, Column, DateTime, String

from fakturace.core.database import Base
from fakturace.models.shared import UUIDType, generate_uuid, utc_now


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"


class User(Base):
    """Account of an invoicing business (the issuer of invoices)."""

    __tablename__ = "users"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    contact_email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=UserRole.USER.value)

    # Issuer details printed on invoices
    company_id = Column(String(20), nullable=True)  # IČO
    vat_number = Column(String(20), nullable=True)  # DIČ
    contact_phone = Column(String(50), nullable=True)
    contact_website = Column(String(255), nullable=True)
    bank_account = Column(String(50), nullable=True)
    billing_details = Column(JSON, nullable=True)
    default_settings = Column(JSON, nullable=True)

    # Account lifecycle
    activated_at = Column(DateTime(timezone=True), nullable=True)
    deactivated_at = Column(DateTime(timezone=True), nullable=True)
    deletion_requested_at = Column(DateTime(timezone=True), nullable=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    last_login = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    @property
    def is_active(self) -> bool:
        return self.deactivated_at is None and self.deleted_at is None

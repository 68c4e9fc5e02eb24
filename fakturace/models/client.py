from sqlalchemy import JSON, Column, DateTime, ForeignKey, String, Text

from fakturace.core.database import Base
from fakturace.models.shared import UUIDType, generate_uuid, utc_now


class Client(Base):
    """Counterparty an invoice is issued to. Owned by a single user."""

    __tablename__ = "clients"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    user_id = Column(
        UUIDType, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = Column(String(255), nullable=False)
    company_id = Column(String(20), nullable=True)  # IČO
    vat_number = Column(String(20), nullable=True)  # DIČ
    # {"street", "house_number", "city", "zip", "country"}
    address = Column(JSON, nullable=True)
    contact_email = Column(String(255), nullable=True)
    contact_phone = Column(String(50), nullable=True)
    note = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

"""AuditLog model recording who changed what."""

from sqlalchemy import JSON, Column, DateTime, String

from fakturace.core.database import Base
from fakturace.models.shared import UUIDType, generate_uuid, utc_now


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    # Plain column, no FK: entries outlive anonymised or purged accounts.
    user_id = Column(UUIDType, nullable=True, index=True)
    action = Column(String(50), nullable=False, index=True)
    entity_type = Column(String(50), nullable=False, index=True)
    entity_id = Column(String(64), nullable=True, index=True)
    changes = Column(JSON, nullable=False, default=dict)
    metadata_ = Column("metadata", JSON, nullable=True)
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now)

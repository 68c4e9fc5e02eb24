"""Audit trail of account, client, invoice and subscription changes."""

import logging
from typing import Any
from uuid import UUID

from fastapi import Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fakturace.core.rate_limiter import client_ip
from fakturace.repositories.audit_log_repository import AuditLogRepository

logger = logging.getLogger(__name__)


class AuditService:
    """Service for recording audit trail entries."""

    def __init__(self, db: Session):
        self.db = db
        self.repo = AuditLogRepository(db)

    def log(
        self,
        action: str,
        entity_type: str,
        entity_id: UUID | str | None = None,
        user_id: UUID | None = None,
        request: Request | None = None,
        changes: dict[str, Any] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """Record an event such as ``invoice.create`` or ``auth.login``.

        A failing audit write is logged and rolled back; it never fails the
        operation being audited.
        """
        try:
            self.repo.create(
                action=action,
                entity_type=entity_type,
                entity_id=str(entity_id) if entity_id is not None else None,
                user_id=user_id,
                changes=changes,
                metadata=metadata,
                ip_address=client_ip(request) if request is not None else None,
                user_agent=request.headers.get("user-agent") if request is not None else None,
            )
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Failed to write audit event %s for %s", action, entity_id)

    def log_update(
        self,
        entity_type: str,
        entity_id: UUID,
        user_id: UUID | None,
        old_data: dict[str, Any],
        new_data: dict[str, Any],
        request: Request | None = None,
    ) -> None:
        """Log an update event, diffing the changed fields."""
        changes: dict[str, Any] = {}
        for key in set(old_data) | set(new_data):
            old_val = old_data.get(key)
            new_val = new_data.get(key)
            if old_val != new_val:
                changes[key] = {"old": old_val, "new": new_val}
        if not changes:
            return
        self.log(
            f"{entity_type}.update",
            entity_type,
            entity_id,
            user_id=user_id,
            request=request,
            changes=changes,
        )

    def log_status_change(
        self,
        entity_type: str,
        entity_id: UUID,
        user_id: UUID | None,
        old_status: Any,
        new_status: Any,
        request: Request | None = None,
    ) -> None:
        self.log(
            f"{entity_type}.status_change",
            entity_type,
            entity_id,
            user_id=user_id,
            request=request,
            changes={"status": {"old": old_status, "new": new_status}},
        )

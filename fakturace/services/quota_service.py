"""Monthly invoice quota: usage counting and the create/downgrade gates."""

from __future__ import annotations

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy.orm import Session

from fakturace.core.errors import InvoiceLimitReachedError, ValidationError
from fakturace.models.shared import utc_now
from fakturace.models.subscription import SubscriptionPlan
from fakturace.repositories.subscription_repository import InvoiceUsageRepository
from fakturace.services.plan_resolver import PlanResolver

logger = logging.getLogger(__name__)


class QuotaService:
    def __init__(self, db: Session, now: datetime | None = None):
        self.usage = InvoiceUsageRepository(db)
        self.resolver = PlanResolver(db)
        self._now = now

    def _period(self) -> tuple[int, int]:
        now = self._now or utc_now()
        return now.year, now.month

    def current_usage(self, user_id: UUID) -> int:
        year, month = self._period()
        return self.usage.get_count(user_id, year, month)

    def can_create_invoice(self, user_id: UUID) -> bool:
        plan = self.resolver.get_current_plan(user_id)
        if plan.is_unlimited:
            return True
        return self.current_usage(user_id) < int(plan.invoice_limit_monthly)

    def ensure_can_create_invoice(self, user_id: UUID) -> None:
        if not self.can_create_invoice(user_id):
            logger.info("Invoice quota exhausted for user %s", user_id)
            raise InvoiceLimitReachedError()

    def increment_usage(self, user_id: UUID) -> int:
        year, month = self._period()
        return self.usage.increment(user_id, year, month)

    @staticmethod
    def usage_percentage(usage: int, limit: int) -> int:
        if limit <= 0:
            return 0
        return round(usage / limit * 100)

    def check_downgrade(self, user_id: UUID, target_plan: SubscriptionPlan) -> None:
        """Reject moving to a lower limit the user has already exceeded this month.

        Raises:
            ValidationError: ``current_usage > target limit`` on a downgrade.
        """
        if target_plan.is_unlimited:
            return
        target_limit = int(target_plan.invoice_limit_monthly)
        current_limit = self.resolver.get_invoice_limit(user_id)
        if current_limit != 0 and target_limit >= current_limit:
            return
        usage = self.current_usage(user_id)
        if usage > target_limit:
            raise ValidationError(
                f"Nelze převést na plán {target_plan.name}. Uživatel vytvořil {usage} faktur "
                f"tento měsíc, ale plán {target_plan.name} umožňuje pouze {target_limit} "
                "faktur měsíčně."
            )

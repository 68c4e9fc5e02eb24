"""Resolve a user's current subscription and the plan that governs their quota."""

from __future__ import annotations

import logging
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from fakturace.core.config import settings
from fakturace.models.subscription import SubscriptionPlan, SubscriptionStatus, UserSubscription
from fakturace.repositories.subscription_repository import PlanRepository, SubscriptionRepository

logger = logging.getLogger(__name__)


class PlanResolver:
    def __init__(self, db: Session):
        self.plans = PlanRepository(db)
        self.subscriptions = SubscriptionRepository(db)

    def get_current_subscription(self, user_id: UUID) -> UserSubscription | None:
        return self.subscriptions.get_current(user_id)

    def get_free_plan(self) -> SubscriptionPlan:
        """The Free plan row, or an unsaved stand-in when it is not seeded."""
        plan = self.plans.get_by_name(settings.FREE_PLAN_NAME)
        if plan is not None:
            return plan
        logger.warning("Plan %r missing, using built-in defaults", settings.FREE_PLAN_NAME)
        return SubscriptionPlan(
            name=settings.FREE_PLAN_NAME,
            invoice_limit_monthly=settings.FREE_PLAN_INVOICE_LIMIT,
            price_monthly=Decimal("0"),
            price_yearly=Decimal("0"),
            features={},
            is_active=True,
        )

    def get_current_plan(self, user_id: UUID) -> SubscriptionPlan:
        """Plan of the current subscription while it is active, else Free.

        A pending, failed or canceled subscription does not grant its plan's
        limits.
        """
        subscription = self.get_current_subscription(user_id)
        if subscription is None or subscription.status != SubscriptionStatus.ACTIVE.value:
            return self.get_free_plan()
        return subscription.plan

    def get_invoice_limit(self, user_id: UUID) -> int:
        return int(self.get_current_plan(user_id).invoice_limit_monthly or 0)

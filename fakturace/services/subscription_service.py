"""User subscriptions: plan assignment, upgrades and payment bookkeeping."""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from fakturace.core.config import settings
from fakturace.core.errors import NotFoundError, ValidationError
from fakturace.models.shared import utc_now
from fakturace.models.subscription import (
    BillingCycle,
    SubscriptionPlan,
    SubscriptionStatus,
    UserSubscription,
)
from fakturace.repositories.subscription_repository import PlanRepository, SubscriptionRepository
from fakturace.schemas.subscription import PaymentWebhookEvent
from fakturace.services.plan_resolver import PlanResolver
from fakturace.services.quota_service import QuotaService
from fakturace.services.spayd import czech_account_to_iban, generate_spayd
from fakturace.services.subscription_dates import period_for
from fakturace.services.variable_symbol import generate_unique_variable_symbol

logger = logging.getLogger(__name__)

PLAN_NOT_FOUND = "Plán nenalezen"


def plan_price(plan: SubscriptionPlan, billing_cycle: BillingCycle | str) -> Decimal:
    if BillingCycle(billing_cycle) is BillingCycle.YEARLY:
        return Decimal(str(plan.price_yearly or 0))
    return Decimal(str(plan.price_monthly or 0))


class SubscriptionService:
    def __init__(self, db: Session, now: datetime | None = None):
        self.db = db
        self.plans = PlanRepository(db)
        self.subscriptions = SubscriptionRepository(db)
        self.resolver = PlanResolver(db)
        self.quota = QuotaService(db, now=now)
        self._now = now

    def now(self) -> datetime:
        return self._now or utc_now()

    def get_plan(self, plan_id: int) -> SubscriptionPlan:
        plan = self.plans.get_by_id(plan_id)
        if plan is None:
            raise NotFoundError(PLAN_NOT_FOUND)
        return plan

    def get_subscription(self, subscription_id: UUID) -> UserSubscription:
        subscription = self.subscriptions.get_by_id(subscription_id)
        if subscription is None:
            raise NotFoundError("Předplatné nenalezeno")
        return subscription

    # -- status bookkeeping ------------------------------------------------

    def set_status(
        self,
        subscription: UserSubscription,
        new_status: SubscriptionStatus,
        reason: str | None = None,
        actor_id: UUID | None = None,
    ) -> None:
        """Change the status and record the history row; the caller commits."""
        old_status = subscription.status
        subscription.status = new_status.value
        if new_status is SubscriptionStatus.CANCELED:
            subscription.canceled_at = self.now()
        self.subscriptions.add_history(
            subscription, old_status, new_status.value, reason=reason, created_by=actor_id
        )

    def assign_plan(
        self,
        user_id: UUID,
        plan: SubscriptionPlan,
        billing_cycle: BillingCycle | str = BillingCycle.MONTHLY,
        status: SubscriptionStatus = SubscriptionStatus.ACTIVE,
        reason: str | None = None,
        actor_id: UUID | None = None,
        variable_symbol: str | None = None,
    ) -> UserSubscription:
        """Put the user on ``plan`` with a fresh period starting now.

        The current row is updated in place; a user without any subscription
        gets a new one.
        """
        start, end = period_for(self.now(), billing_cycle)
        subscription = self.subscriptions.get_current(user_id)
        if subscription is None:
            subscription = self.subscriptions.create(
                user_id=user_id,
                plan_id=plan.id,
                status=status.value,
                billing_cycle=BillingCycle(billing_cycle).value,
                current_period_start=start,
                current_period_end=end,
                variable_symbol=variable_symbol,
            )
            self.subscriptions.add_history(
                subscription, None, status.value, reason=reason, created_by=actor_id
            )
        else:
            subscription.plan_id = plan.id
            subscription.plan = plan
            subscription.billing_cycle = BillingCycle(billing_cycle).value
            subscription.current_period_start = start
            subscription.current_period_end = end
            subscription.variable_symbol = variable_symbol
            subscription.canceled_at = None
            self.set_status(subscription, status, reason=reason, actor_id=actor_id)
        self.subscriptions.commit(subscription)
        logger.info(
            "User %s assigned plan %s (%s, %s)", user_id, plan.name, billing_cycle, status.value
        )
        return subscription

    def create_free_subscription(self, user_id: UUID) -> UserSubscription | None:
        plan = self.plans.get_by_name(settings.FREE_PLAN_NAME)
        if plan is None:
            logger.warning(
                "Plan %r is not seeded, user %s left without subscription",
                settings.FREE_PLAN_NAME,
                user_id,
            )
            return None
        subscription = self.subscriptions.create(
            user_id=user_id,
            plan_id=plan.id,
            status=SubscriptionStatus.ACTIVE.value,
            billing_cycle=BillingCycle.MONTHLY.value,
            current_period_start=self.now(),
            current_period_end=None,
        )
        self.subscriptions.add_history(
            subscription, None, SubscriptionStatus.ACTIVE.value, reason="Registrace"
        )
        self.subscriptions.commit(subscription)
        return subscription

    # -- user facing -------------------------------------------------------

    def get_status(self, user_id: UUID) -> dict[str, Any]:
        plan = self.resolver.get_current_plan(user_id)
        limit = int(plan.invoice_limit_monthly or 0)
        usage = self.quota.current_usage(user_id)
        return {
            "plan": plan,
            "subscription": self.resolver.get_current_subscription(user_id),
            "current_usage": usage,
            "invoice_limit": limit,
            "usage_percentage": QuotaService.usage_percentage(usage, limit),
            "can_create_invoice": plan.is_unlimited or usage < limit,
            "available_plans": self.plans.get_all(active_only=True),
        }

    def payment_instructions(self, subscription: UserSubscription) -> dict[str, Any]:
        amount = plan_price(subscription.plan, subscription.billing_cycle)
        account = settings.BILLING_BANK_ACCOUNT
        return {
            "amount": amount,
            "currency": settings.DEFAULT_CURRENCY,
            "variable_symbol": subscription.variable_symbol,
            "bank_account": account,
            "iban": czech_account_to_iban(account),
            "spayd": generate_spayd(
                account=account,
                amount=amount,
                currency=settings.DEFAULT_CURRENCY,
                variable_symbol=subscription.variable_symbol,
                beneficiary_name=settings.BILLING_BENEFICIARY_NAME,
                message=f"{settings.APP_NAME} {subscription.plan.name}",
            ),
        }

    def upgrade(
        self, user_id: UUID, plan_id: int, billing_cycle: BillingCycle | str
    ) -> dict[str, Any]:
        """Switch the user to another plan.

        A free plan is active immediately. A paid plan waits in
        ``pending_payment`` under a fresh variable symbol until the transfer
        is confirmed; the returned payment instructions describe it.
        """
        plan = self.get_plan(plan_id)
        if not plan.is_active:
            raise NotFoundError(PLAN_NOT_FOUND)
        cycle = BillingCycle(billing_cycle)

        current = self.subscriptions.get_current(user_id)
        if (
            current is not None
            and current.plan_id == plan.id
            and current.billing_cycle == cycle.value
            and current.status == SubscriptionStatus.ACTIVE.value
        ):
            raise ValidationError("Již máte aktivní předplatné tohoto plánu")
        self.quota.check_downgrade(user_id, plan)

        if plan_price(plan, cycle) <= 0:
            subscription = self.assign_plan(
                user_id, plan, cycle, reason="Změna plánu uživatelem"
            )
            return {"subscription": subscription, "payment": None}

        symbol = generate_unique_variable_symbol(self.subscriptions.variable_symbol_exists)
        subscription = self.assign_plan(
            user_id,
            plan,
            cycle,
            status=SubscriptionStatus.PENDING_PAYMENT,
            reason="Čeká na platbu",
            variable_symbol=symbol,
        )
        return {"subscription": subscription, "payment": self.payment_instructions(subscription)}

    # -- payment gateway stub ----------------------------------------------

    def handle_webhook(self, event: PaymentWebhookEvent) -> UserSubscription | None:
        """Apply ``payment.succeeded`` / ``payment.failed``; other events are ignored."""
        subscription: UserSubscription | None = None
        if event.subscription_id is not None:
            subscription = self.subscriptions.get_by_id(event.subscription_id)
        elif event.variable_symbol:
            subscription = self.subscriptions.get_by_variable_symbol(event.variable_symbol)

        if subscription is None:
            logger.warning("Payment webhook %s for unknown subscription", event.type)
            return None

        if event.type == "payment.succeeded":
            if subscription.status != SubscriptionStatus.ACTIVE.value:
                start, end = period_for(self.now(), subscription.billing_cycle)
                subscription.current_period_start = start
                subscription.current_period_end = end
            self.set_status(subscription, SubscriptionStatus.ACTIVE, reason="Platba přijata")
            self.subscriptions.add_payment(
                subscription,
                amount=event.amount
                if event.amount is not None
                else plan_price(subscription.plan, subscription.billing_cycle),
                payment_method="webhook",
                transaction_id=event.transaction_id,
                processor_response=event.data or None,
            )
        elif event.type == "payment.failed":
            self.set_status(
                subscription, SubscriptionStatus.PAYMENT_FAILED, reason="Platba selhala"
            )
        else:
            logger.info("Ignoring payment webhook of type %s", event.type)
            return subscription

        self.subscriptions.commit(subscription)
        logger.info("Payment webhook %s applied to subscription %s", event.type, subscription.id)
        return subscription

"""Administrator tooling: user overview, plan statistics and manual subscription work."""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from fakturace.core.config import settings
from fakturace.core.errors import NotFoundError, ValidationError
from fakturace.models.subscription import BillingCycle, SubscriptionStatus, UserSubscription
from fakturace.models.user import User
from fakturace.repositories.invoice_repository import InvoiceRepository
from fakturace.repositories.subscription_repository import (
    InvoiceUsageRepository,
    PlanRepository,
    SubscriptionRepository,
)
from fakturace.repositories.user_repository import UserRepository
from fakturace.services.plan_resolver import PlanResolver
from fakturace.services.quota_service import QuotaService
from fakturace.services.subscription_dates import extend_period, period_for
from fakturace.services.subscription_service import SubscriptionService, plan_price

logger = logging.getLogger(__name__)

DEFAULT_ACTIVATION_REASON = "Manuální aktivace po obdržení platby"
USER_NOT_FOUND = "Uživatel nenalezen"


class AdminService:
    def __init__(self, db: Session, now: datetime | None = None):
        self.db = db
        self.users = UserRepository(db)
        self.invoices = InvoiceRepository(db)
        self.plans = PlanRepository(db)
        self.subscriptions = SubscriptionRepository(db)
        self.usage = InvoiceUsageRepository(db)
        self.resolver = PlanResolver(db)
        self.quota = QuotaService(db, now=now)
        self.subscription_service = SubscriptionService(db, now=now)

    def _get_user(self, user_id: UUID) -> User:
        user = self.users.get_by_id(user_id)
        if user is None:
            raise NotFoundError(USER_NOT_FOUND)
        return user

    # -- overviews ---------------------------------------------------------

    def users_with_stats(self, skip: int = 0, limit: int = 100) -> list[dict[str, Any]]:
        """Each user with invoice counts, paid revenue and quota state."""
        stats = self.invoices.stats_by_user()
        now = self.subscription_service.now()
        usage_by_user = self.usage.counts_for_month(now.year, now.month)

        rows = []
        for user in self.users.get_all(skip=skip, limit=limit):
            user_stats = stats.get(user.id, {})
            usage = usage_by_user.get(user.id, 0)
            limit_for_user = self.resolver.get_invoice_limit(user.id)
            rows.append(
                {
                    "id": user.id,
                    "name": user.name,
                    "contact_email": user.contact_email,
                    "role": user.role,
                    "company_id": user.company_id,
                    "activated_at": user.activated_at,
                    "deactivated_at": user.deactivated_at,
                    "deleted_at": user.deleted_at,
                    "last_login": user.last_login,
                    "created_at": user.created_at,
                    "total_invoices": user_stats.get("total", 0),
                    "paid_invoices": user_stats.get("paid", 0),
                    "unpaid_invoices": user_stats.get("unpaid", 0),
                    "total_revenue": user_stats.get("revenue", Decimal("0")),
                    "subscription": self.subscriptions.get_current(user.id),
                    "current_usage": usage,
                    "can_create_invoice": limit_for_user == 0 or usage < limit_for_user,
                }
            )
        return rows

    def plan_stats(self) -> list[dict[str, Any]]:
        active = self.subscriptions.get_all(status=SubscriptionStatus.ACTIVE.value, limit=100000)
        result = []
        for plan in self.plans.get_all(active_only=False):
            on_plan = [s for s in active if s.plan_id == plan.id]
            monthly = sum(1 for s in on_plan if s.billing_cycle == BillingCycle.MONTHLY.value)
            yearly = len(on_plan) - monthly
            result.append(
                {
                    "plan": plan,
                    "active_subscriptions": len(on_plan),
                    "monthly_subscriptions": monthly,
                    "yearly_subscriptions": yearly,
                    "monthly_revenue": Decimal(str(plan.price_monthly or 0)) * monthly,
                    "yearly_revenue": Decimal(str(plan.price_yearly or 0)) * yearly,
                }
            )
        return result

    def pending_payments(self) -> list[dict[str, Any]]:
        pending = []
        for subscription in self.subscriptions.get_all(
            status=SubscriptionStatus.PENDING_PAYMENT.value, limit=100000
        ):
            current = self.subscriptions.get_current(subscription.user_id)
            if current is None or current.id != subscription.id:
                continue
            user = self.users.get_by_id(subscription.user_id)
            if user is None:
                continue
            pending.append(
                {
                    "user_id": user.id,
                    "user_name": user.name,
                    "contact_email": user.contact_email,
                    "subscription": subscription,
                    "amount": plan_price(subscription.plan, subscription.billing_cycle),
                }
            )
        return pending

    # -- subscriptions -----------------------------------------------------

    def list_subscriptions(self, status: str | None = None) -> list[UserSubscription]:
        return self.subscriptions.get_all(status=status, limit=1000)

    def subscription_detail(self, subscription_id: UUID) -> dict[str, Any]:
        subscription = self.subscription_service.get_subscription(subscription_id)
        return {
            "subscription": subscription,
            "current_usage": self.quota.current_usage(subscription.user_id),
            "can_create_invoice": self.quota.can_create_invoice(subscription.user_id),
        }

    def subscription_history(self, subscription_id: UUID) -> list[Any]:
        self.subscription_service.get_subscription(subscription_id)
        return self.subscriptions.get_history(subscription_id)

    def assign_plan(
        self,
        admin: User,
        user_id: UUID,
        plan_id: int,
        billing_cycle: BillingCycle | str = BillingCycle.MONTHLY,
        status: SubscriptionStatus = SubscriptionStatus.ACTIVE,
        reason: str | None = None,
    ) -> UserSubscription:
        """Move a user to another plan, refusing downgrades below current usage."""
        self._get_user(user_id)
        plan = self.subscription_service.get_plan(plan_id)
        self.quota.check_downgrade(user_id, plan)
        return self.subscription_service.assign_plan(
            user_id,
            plan,
            billing_cycle,
            status=status,
            reason=reason or "Změna plánu administrátorem",
            actor_id=admin.id,
        )

    def update_subscription(
        self,
        admin: User,
        subscription_id: UUID,
        plan_id: int | None = None,
        billing_cycle: BillingCycle | None = None,
        status: SubscriptionStatus | None = None,
        extend: bool = False,
        reason: str | None = None,
    ) -> UserSubscription:
        subscription = self.subscription_service.get_subscription(subscription_id)
        if plan_id is not None and plan_id != subscription.plan_id:
            plan = self.subscription_service.get_plan(plan_id)
            self.quota.check_downgrade(subscription.user_id, plan)
            subscription.plan_id = plan.id
            subscription.plan = plan
        if billing_cycle is not None:
            subscription.billing_cycle = BillingCycle(billing_cycle).value
        if extend:
            subscription.current_period_end = extend_period(
                subscription.current_period_end,
                subscription.billing_cycle,
                self.subscription_service.now(),
            )
        if status is not None and status.value != subscription.status:
            self.subscription_service.set_status(subscription, status, reason, admin.id)
        self.subscriptions.commit(subscription)
        logger.info("Admin %s updated subscription %s", admin.id, subscription.id)
        return subscription

    def cancel_subscription(
        self, admin: User, subscription_id: UUID, reason: str | None = None
    ) -> UserSubscription:
        subscription = self.subscription_service.get_subscription(subscription_id)
        if subscription.status == SubscriptionStatus.CANCELED.value:
            raise ValidationError("Předplatné je již zrušeno")
        self.subscription_service.set_status(
            subscription, SubscriptionStatus.CANCELED, reason, admin.id
        )
        self.subscriptions.commit(subscription)
        return subscription

    def cancel_with_fallback(
        self, admin: User, user_id: UUID, reason: str | None = None
    ) -> dict[str, Any]:
        """Cancel the current subscription; a paid one is replaced by an active Free row."""
        self._get_user(user_id)
        free_plan = self.plans.get_by_name(settings.FREE_PLAN_NAME)
        if free_plan is None:
            raise NotFoundError("Plán Free nenalezen")
        current = self.subscriptions.get_current(user_id)
        if current is None:
            raise ValidationError("Uživatel nemá žádné předplatné")

        self.subscription_service.set_status(
            current, SubscriptionStatus.CANCELED, reason or "Zrušeno administrátorem", admin.id
        )
        if current.plan_id == free_plan.id:
            self.subscriptions.commit(current)
            return {"action": "canceled_free", "canceled": current, "fallback": None}

        start, end = period_for(self.subscription_service.now(), BillingCycle.MONTHLY)
        fallback = self.subscriptions.create(
            user_id=user_id,
            plan_id=free_plan.id,
            status=SubscriptionStatus.ACTIVE.value,
            billing_cycle=BillingCycle.MONTHLY.value,
            current_period_start=start,
            current_period_end=end,
        )
        self.subscriptions.add_history(
            fallback,
            None,
            SubscriptionStatus.ACTIVE.value,
            reason="Přechod na plán Free po zrušení",
            created_by=admin.id,
        )
        self.subscriptions.commit(current, fallback)
        logger.info("User %s fell back to Free after cancellation of %s", user_id, current.id)
        return {"action": "canceled_and_fallback", "canceled": current, "fallback": fallback}

    def activate_pending(
        self,
        admin: User,
        subscription_id: UUID,
        user_id: UUID | None = None,
        reason: str | None = None,
    ) -> dict[str, Any]:
        """Activate a subscription after the bank transfer arrived.

        Records a ``manual_admin`` payment for the plan price of the cycle.
        """
        subscription = self.subscription_service.get_subscription(subscription_id)
        if user_id is not None and subscription.user_id != user_id:
            raise NotFoundError("Předplatné nenalezeno")
        if subscription.status not in (
            SubscriptionStatus.PENDING_PAYMENT.value,
            SubscriptionStatus.CANCELED.value,
        ):
            raise ValidationError(
                f"Předplatné nelze aktivovat ve stavu {subscription.status}. "
                "Aktivovat lze pouze předplatné čekající na platbu nebo zrušené."
            )
        if subscription.plan.is_free:
            raise ValidationError("Plán Free nevyžaduje ruční aktivaci")

        reason = reason or DEFAULT_ACTIVATION_REASON
        now = self.subscription_service.now()
        if subscription.status == SubscriptionStatus.CANCELED.value:
            start, end = period_for(now, subscription.billing_cycle)
            subscription.current_period_start = start
            subscription.current_period_end = end
            subscription.canceled_at = None
        self.subscription_service.set_status(
            subscription, SubscriptionStatus.ACTIVE, reason, admin.id
        )
        payment = self.subscriptions.add_payment(
            subscription,
            amount=plan_price(subscription.plan, subscription.billing_cycle),
            payment_method="manual_admin",
            transaction_id=f"admin_manual_{int(now.timestamp() * 1000)}",
            processor_response={
                "reason": reason,
                "activated_by": str(admin.id),
                "activated_at": now.isoformat(),
            },
            processed_at=now,
        )
        self.subscriptions.commit(subscription, payment)
        logger.info("Admin %s activated subscription %s", admin.id, subscription.id)
        return {"subscription": subscription, "payment": payment}

    # -- user management ---------------------------------------------------

    def set_deactivated(
        self, admin: User, user_id: UUID, deactivate: bool | None = None
    ) -> User:
        """Deactivate or reactivate a user; ``None`` toggles the current state."""
        if user_id == admin.id:
            raise ValidationError("Nemůžete deaktivovat svůj vlastní účet")
        user = self._get_user(user_id)
        is_deactivated = user.deactivated_at is not None
        if deactivate is None:
            deactivate = not is_deactivated
        if deactivate and is_deactivated:
            raise ValidationError("Uživatel je již deaktivován")
        if not deactivate and not is_deactivated:
            raise ValidationError("Uživatel je již aktivní")
        return self.users.update(
            user, deactivated_at=self.subscription_service.now() if deactivate else None
        )

    def soft_delete_user(self, admin: User, user_id: UUID) -> User:
        if user_id == admin.id:
            raise ValidationError("Nemůžete smazat svůj vlastní účet")
        user = self._get_user(user_id)
        if user.deactivated_at is None:
            raise ValidationError("Uživatel není deaktivovaný")
        if user.deleted_at is not None:
            raise ValidationError("Uživatel je již smazán")
        return self.users.update(user, deleted_at=self.subscription_service.now())

    def restore_user(self, user_id: UUID) -> User:
        user = self._get_user(user_id)
        if user.deleted_at is None:
            raise ValidationError("Uživatel není smazán")
        return self.users.update(user, deleted_at=None)

from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from fakturace.models.shared import utc_now
from fakturace.models.subscription import (
    InvoiceUsage,
    SubscriptionPayment,
    SubscriptionPlan,
    SubscriptionStatusHistory,
    UserSubscription,
)


class PlanRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_all(self, active_only: bool = True) -> list[SubscriptionPlan]:
        query = self.db.query(SubscriptionPlan)
        if active_only:
            query = query.filter(SubscriptionPlan.is_active.is_(True))
        return query.order_by(SubscriptionPlan.price_monthly.asc(), SubscriptionPlan.id).all()

    def get_by_id(self, plan_id: int) -> SubscriptionPlan | None:
        return self.db.query(SubscriptionPlan).filter(SubscriptionPlan.id == plan_id).first()

    def get_by_name(self, name: str) -> SubscriptionPlan | None:
        return self.db.query(SubscriptionPlan).filter(SubscriptionPlan.name == name).first()


class SubscriptionRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, subscription_id: UUID) -> UserSubscription | None:
        return (
            self.db.query(UserSubscription).filter(UserSubscription.id == subscription_id).first()
        )

    def get_current(self, user_id: UUID) -> UserSubscription | None:
        """Most recently created row for the user, whatever its status."""
        return (
            self.db.query(UserSubscription)
            .filter(UserSubscription.user_id == user_id)
            .order_by(UserSubscription.created_at.desc())
            .first()
        )

    def get_for_user(self, user_id: UUID) -> list[UserSubscription]:
        return (
            self.db.query(UserSubscription)
            .filter(UserSubscription.user_id == user_id)
            .order_by(UserSubscription.created_at.desc())
            .all()
        )

    def get_all(
        self, status: str | None = None, skip: int = 0, limit: int = 100
    ) -> list[UserSubscription]:
        query = self.db.query(UserSubscription)
        if status is not None:
            query = query.filter(UserSubscription.status == status)
        return (
            query.order_by(UserSubscription.created_at.desc()).offset(skip).limit(limit).all()
        )

    def variable_symbol_exists(self, variable_symbol: str) -> bool:
        return (
            self.db.query(UserSubscription.id)
            .filter(UserSubscription.variable_symbol == variable_symbol)
            .first()
            is not None
        )

    def get_by_variable_symbol(self, variable_symbol: str) -> UserSubscription | None:
        return (
            self.db.query(UserSubscription)
            .filter(UserSubscription.variable_symbol == variable_symbol)
            .order_by(UserSubscription.created_at.desc())
            .first()
        )

    def create(self, **fields: Any) -> UserSubscription:
        subscription = UserSubscription(**fields)
        self.db.add(subscription)
        self.db.flush()
        return subscription

    def add_history(
        self,
        subscription: UserSubscription,
        old_status: str | None,
        new_status: str,
        reason: str | None = None,
        created_by: UUID | None = None,
    ) -> SubscriptionStatusHistory:
        entry = SubscriptionStatusHistory(
            subscription_id=subscription.id,
            old_status=old_status,
            new_status=new_status,
            reason=reason,
            created_by=created_by,
        )
        self.db.add(entry)
        return entry

    def get_history(self, subscription_id: UUID) -> list[SubscriptionStatusHistory]:
        return (
            self.db.query(SubscriptionStatusHistory)
            .filter(SubscriptionStatusHistory.subscription_id == subscription_id)
            .order_by(SubscriptionStatusHistory.created_at.desc())
            .all()
        )

    def add_payment(
        self,
        subscription: UserSubscription,
        amount: Decimal,
        payment_method: str,
        transaction_id: str | None = None,
        currency: str = "CZK",
        status: str = "completed",
        processor_response: dict[str, Any] | None = None,
        processed_at: datetime | None = None,
    ) -> SubscriptionPayment:
        payment = SubscriptionPayment(
            subscription_id=subscription.id,
            amount=amount,
            currency=currency,
            status=status,
            payment_method=payment_method,
            transaction_id=transaction_id,
            processor_response=processor_response,
            processed_at=processed_at or utc_now(),
        )
        self.db.add(payment)
        return payment

    def commit(self, *instances: Any) -> None:
        self.db.commit()
        for instance in instances:
            self.db.refresh(instance)


class InvoiceUsageRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: UUID, year: int, month: int) -> InvoiceUsage | None:
        return (
            self.db.query(InvoiceUsage)
            .filter(
                InvoiceUsage.user_id == user_id,
                InvoiceUsage.year == year,
                InvoiceUsage.month == month,
            )
            .first()
        )

    def get_count(self, user_id: UUID, year: int, month: int) -> int:
        usage = self.get(user_id, year, month)
        return int(usage.invoices_created) if usage else 0

    def increment(self, user_id: UUID, year: int, month: int) -> int:
        usage = self.get(user_id, year, month)
        if usage is None:
            usage = InvoiceUsage(user_id=user_id, year=year, month=month, invoices_created=1)
            self.db.add(usage)
        else:
            # UPDATE ... SET invoices_created = invoices_created + 1
            usage.invoices_created = InvoiceUsage.invoices_created + 1
        self.db.commit()
        self.db.refresh(usage)
        return int(usage.invoices_created)

    def get_for_user(self, user_id: UUID) -> list[InvoiceUsage]:
        return (
            self.db.query(InvoiceUsage)
            .filter(InvoiceUsage.user_id == user_id)
            .order_by(InvoiceUsage.year.desc(), InvoiceUsage.month.desc())
            .all()
        )

    def counts_for_month(self, year: int, month: int) -> dict[UUID, int]:
        rows = (
            self.db.query(InvoiceUsage.user_id, InvoiceUsage.invoices_created)
            .filter(InvoiceUsage.year == year, InvoiceUsage.month == month)
            .all()
        )
        return {user_id: int(count) for user_id, count in rows}

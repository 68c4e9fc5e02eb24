from enum import Enum

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from fakturace.core.database import Base
from fakturace.models.shared import UUIDType, generate_uuid, utc_now


class SubscriptionStatus(str, Enum):
    ACTIVE = "active"
    PENDING_PAYMENT = "pending_payment"
    CANCELED = "canceled"
    PAYMENT_FAILED = "payment_failed"


class BillingCycle(str, Enum):
    MONTHLY = "monthly"
    YEARLY = "yearly"


class SubscriptionPlan(Base):
    __tablename__ = "subscription_plans"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    invoice_limit_monthly = Column(Integer, nullable=False, default=0)  # 0 = unlimited
    price_monthly = Column(Numeric(12, 2), nullable=False, default=0)
    price_yearly = Column(Numeric(12, 2), nullable=False, default=0)
    features = Column(JSON, nullable=False, default=dict)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=utc_now)

    @property
    def is_free(self) -> bool:
        return not self.price_monthly and not self.price_yearly

    @property
    def is_unlimited(self) -> bool:
        return self.invoice_limit_monthly == 0


class UserSubscription(Base):
    """A user's subscription row. The newest row per user is the current one."""

    __tablename__ = "user_subscriptions"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    user_id = Column(
        UUIDType, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    plan_id = Column(Integer, ForeignKey("subscription_plans.id"), nullable=False)
    status = Column(String(30), nullable=False, default=SubscriptionStatus.ACTIVE.value)
    billing_cycle = Column(String(20), nullable=False, default=BillingCycle.MONTHLY.value)
    current_period_start = Column(DateTime(timezone=True), nullable=True)
    current_period_end = Column(DateTime(timezone=True), nullable=True)
    variable_symbol = Column(String(10), nullable=True, index=True)
    canceled_at = Column(DateTime(timezone=True), nullable=True)
    # Python-side default keeps microsecond ordering between rows of one request.
    created_at = Column(DateTime(timezone=True), default=utc_now, index=True)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    plan = relationship("SubscriptionPlan", lazy="joined")


class SubscriptionStatusHistory(Base):
    __tablename__ = "subscription_status_history"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    subscription_id = Column(
        UUIDType,
        ForeignKey("user_subscriptions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    old_status = Column(String(30), nullable=True)
    new_status = Column(String(30), nullable=False)
    reason = Column(Text, nullable=True)
    created_by = Column(UUIDType, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now)


class SubscriptionPayment(Base):
    __tablename__ = "subscription_payments"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    subscription_id = Column(
        UUIDType,
        ForeignKey("user_subscriptions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="CZK")
    status = Column(String(20), nullable=False, default="completed")
    payment_method = Column(String(50), nullable=True)
    transaction_id = Column(String(255), nullable=True)
    processor_response = Column(JSON, nullable=True)
    processed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now)


class InvoiceUsage(Base):
    """Invoices created per user and calendar month. Only ever incremented."""

    __tablename__ = "invoice_usage"
    __table_args__ = (UniqueConstraint("user_id", "year", "month", name="uq_invoice_usage_period"),)

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    user_id = Column(
        UUIDType, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    year = Column(Integer, nullable=False)
    month = Column(Integer, nullable=False)
    invoices_created = Column(Integer, nullable=False, default=0)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

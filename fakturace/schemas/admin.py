from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel

from fakturace.models.subscription import BillingCycle, SubscriptionStatus
from fakturace.schemas.subscription import (
    PaymentRecordResponse,
    PlanResponse,
    SubscriptionResponse,
)


class AdminUserResponse(BaseModel):
    id: UUID
    name: str
    contact_email: str
    role: str
    company_id: str | None
    activated_at: datetime | None
    deactivated_at: datetime | None
    deleted_at: datetime | None
    last_login: datetime | None
    created_at: datetime
    total_invoices: int
    paid_invoices: int
    unpaid_invoices: int
    total_revenue: Decimal
    subscription: SubscriptionResponse | None
    current_usage: int
    can_create_invoice: bool


class PlanStatsResponse(BaseModel):
    plan: PlanResponse
    active_subscriptions: int
    monthly_subscriptions: int
    yearly_subscriptions: int
    monthly_revenue: Decimal
    yearly_revenue: Decimal


class PendingPaymentResponse(BaseModel):
    user_id: UUID
    user_name: str
    contact_email: str
    subscription: SubscriptionResponse
    amount: Decimal


class AdminSubscriptionCreate(BaseModel):
    user_id: UUID
    plan_id: int
    billing_cycle: BillingCycle = BillingCycle.MONTHLY
    status: SubscriptionStatus = SubscriptionStatus.ACTIVE
    reason: str | None = None


class AdminSubscriptionUpdate(BaseModel):
    plan_id: int | None = None
    billing_cycle: BillingCycle | None = None
    status: SubscriptionStatus | None = None
    extend_period: bool = False
    reason: str | None = None


class SubscriptionActionRequest(BaseModel):
    subscription_id: UUID
    user_id: UUID | None = None
    reason: str | None = None


class CancelSubscriptionRequest(BaseModel):
    user_id: UUID
    reason: str | None = None


class DeactivateRequest(BaseModel):
    deactivate: bool | None = None


class ChangePlanRequest(BaseModel):
    plan_id: int
    billing_cycle: BillingCycle = BillingCycle.MONTHLY
    reason: str | None = None


class SubscriptionDetailResponse(BaseModel):
    subscription: SubscriptionResponse
    current_usage: int
    can_create_invoice: bool


class ActivationResponse(BaseModel):
    subscription: SubscriptionResponse
    payment: PaymentRecordResponse


class CancelFallbackResponse(BaseModel):
    action: str
    canceled: SubscriptionResponse
    fallback: SubscriptionResponse | None = None

from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from fakturace.models.subscription import BillingCycle, SubscriptionStatus


class PlanResponse(BaseModel):
    id: int
    name: str
    description: str | None
    invoice_limit_monthly: int
    price_monthly: Decimal
    price_yearly: Decimal
    features: dict[str, Any] = Field(default_factory=dict)
    is_active: bool

    model_config = {"from_attributes": True}


class SubscriptionResponse(BaseModel):
    id: UUID
    user_id: UUID
    plan_id: int
    plan: PlanResponse | None = None
    status: SubscriptionStatus
    billing_cycle: BillingCycle
    current_period_start: datetime | None
    current_period_end: datetime | None
    variable_symbol: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class SubscriptionSummary(BaseModel):
    """What the user sees on the subscription page."""

    plan: PlanResponse
    subscription: SubscriptionResponse | None
    current_usage: int
    invoice_limit: int
    usage_percentage: int
    can_create_invoice: bool
    available_plans: list[PlanResponse] = Field(default_factory=list)


class UpgradeRequest(BaseModel):
    plan_id: int
    billing_cycle: BillingCycle = BillingCycle.MONTHLY


class PaymentInstructions(BaseModel):
    amount: Decimal
    currency: str
    variable_symbol: str
    bank_account: str
    iban: str
    spayd: str


class UpgradeResponse(BaseModel):
    subscription: SubscriptionResponse
    payment: PaymentInstructions | None = None


class StatusHistoryResponse(BaseModel):
    id: UUID
    subscription_id: UUID
    old_status: str | None
    new_status: str
    reason: str | None
    created_by: UUID | None
    created_at: datetime

    model_config = {"from_attributes": True}


class PaymentRecordResponse(BaseModel):
    id: UUID
    subscription_id: UUID
    amount: Decimal
    currency: str
    status: str
    payment_method: str | None
    transaction_id: str | None
    processed_at: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}


class PaymentWebhookEvent(BaseModel):
    type: str
    subscription_id: UUID | None = None
    variable_symbol: str | None = None
    amount: Decimal | None = None
    transaction_id: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)

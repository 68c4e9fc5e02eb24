from fakturace.models.audit_log import AuditLog
from fakturace.models.auth_token import EmailVerificationToken, PasswordResetToken
from fakturace.models.client import Client
from fakturace.models.invoice import INVOICE_STATUS_LABELS, Invoice, InvoiceItem, InvoiceStatus
from fakturace.models.reference import DueTerm, PaymentType, Unit
from fakturace.models.subscription import (
    BillingCycle,
    InvoiceUsage,
    SubscriptionPayment,
    SubscriptionPlan,
    SubscriptionStatus,
    SubscriptionStatusHistory,
    UserSubscription,
)
from fakturace.models.user import User, UserRole

__all__ = [
    "AuditLog",
    "BillingCycle",
    "Client",
    "DueTerm",
    "EmailVerificationToken",
    "INVOICE_STATUS_LABELS",
    "Invoice",
    "InvoiceItem",
    "InvoiceStatus",
    "InvoiceUsage",
    "PasswordResetToken",
    "PaymentType",
    "SubscriptionPayment",
    "SubscriptionPlan",
    "SubscriptionStatus",
    "SubscriptionStatusHistory",
    "Unit",
    "User",
    "UserRole",
    "UserSubscription",
]

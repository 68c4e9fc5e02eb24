from fakturace.repositories.audit_log_repository import AuditLogRepository
from fakturace.repositories.auth_token_repository import AuthTokenRepository
from fakturace.repositories.client_repository import ClientRepository
from fakturace.repositories.invoice_repository import InvoiceRepository
from fakturace.repositories.reference_repository import ReferenceRepository
from fakturace.repositories.subscription_repository import (
    InvoiceUsageRepository,
    PlanRepository,
    SubscriptionRepository,
)
from fakturace.repositories.user_repository import UserRepository

__all__ = [
    "AuditLogRepository",
    "AuthTokenRepository",
    "ClientRepository",
    "InvoiceRepository",
    "InvoiceUsageRepository",
    "PlanRepository",
    "ReferenceRepository",
    "SubscriptionRepository",
    "UserRepository",
]

from fakturace.schemas.admin import (
    ActivationResponse,
    AdminSubscriptionCreate,
    AdminSubscriptionUpdate,
    AdminUserResponse,
    CancelFallbackResponse,
    CancelSubscriptionRequest,
    ChangePlanRequest,
    DeactivateRequest,
    PendingPaymentResponse,
    PlanStatsResponse,
    SubscriptionActionRequest,
    SubscriptionDetailResponse,
)
from fakturace.schemas.ares import AresCompany, AresSearchRequest
from fakturace.schemas.auth import (
    EmailRequest,
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    RegisterResponse,
    ResetPasswordRequest,
    UserResponse,
)
from fakturace.schemas.client import ClientCreate, ClientResponse, ClientUpdate
from fakturace.schemas.common import Address, ApiResponse, ErrorResponse
from fakturace.schemas.invoice import (
    InvoiceCreate,
    InvoiceItemCreate,
    InvoiceItemResponse,
    InvoiceResponse,
    InvoiceStatistics,
    InvoiceStatusChange,
    InvoiceUpdate,
    MarkPaidRequest,
    SpaydResponse,
)
from fakturace.schemas.reference import DueTermResponse, PaymentTypeResponse, UnitResponse
from fakturace.schemas.subscription import (
    PaymentInstructions,
    PaymentRecordResponse,
    PaymentWebhookEvent,
    PlanResponse,
    StatusHistoryResponse,
    SubscriptionResponse,
    SubscriptionSummary,
    UpgradeRequest,
    UpgradeResponse,
)
from fakturace.schemas.user import DefaultSettings, ProfileResponse, ProfileUpdate

__all__ = [
    "ActivationResponse",
    "Address",
    "AdminSubscriptionCreate",
    "AdminSubscriptionUpdate",
    "AdminUserResponse",
    "ApiResponse",
    "AresCompany",
    "AresSearchRequest",
    "CancelFallbackResponse",
    "CancelSubscriptionRequest",
    "ChangePlanRequest",
    "ClientCreate",
    "ClientResponse",
    "ClientUpdate",
    "DeactivateRequest",
    "DefaultSettings",
    "DueTermResponse",
    "EmailRequest",
    "ErrorResponse",
    "InvoiceCreate",
    "InvoiceItemCreate",
    "InvoiceItemResponse",
    "InvoiceResponse",
    "InvoiceStatistics",
    "InvoiceStatusChange",
    "InvoiceUpdate",
    "LoginRequest",
    "LoginResponse",
    "MarkPaidRequest",
    "PaymentInstructions",
    "PaymentRecordResponse",
    "PaymentTypeResponse",
    "PaymentWebhookEvent",
    "PendingPaymentResponse",
    "PlanResponse",
    "PlanStatsResponse",
    "ProfileResponse",
    "ProfileUpdate",
    "RegisterRequest",
    "RegisterResponse",
    "ResetPasswordRequest",
    "SpaydResponse",
    "StatusHistoryResponse",
    "SubscriptionActionRequest",
    "SubscriptionDetailResponse",
    "SubscriptionResponse",
    "SubscriptionSummary",
    "UnitResponse",
    "UpgradeRequest",
    "UpgradeResponse",
    "UserResponse",
]

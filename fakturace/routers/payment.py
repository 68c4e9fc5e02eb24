import logging
from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from fakturace.core.database import get_db
from fakturace.schemas.common import ApiResponse, ok
from fakturace.schemas.subscription import PaymentWebhookEvent
from fakturace.services.subscription_service import SubscriptionService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/webhook", response_model=ApiResponse[None], summary="Payment gateway webhook")
async def payment_webhook(
    event: PaymentWebhookEvent,
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    """Accepts ``payment.succeeded`` and ``payment.failed`` events.

    Unknown subscriptions and event types are acknowledged so the gateway
    does not retry them.
    """
    subscription = SubscriptionService(db).handle_webhook(event)
    if subscription is None:
        return ok(message="Událost ignorována")
    return ok(message="Událost zpracována")

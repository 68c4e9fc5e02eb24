"""Reference data every installation needs: plans, due terms, payment types and units."""

import logging
from decimal import Decimal
from typing import Any

from sqlalchemy.orm import Session

from fakturace.core.config import settings
from fakturace.models.reference import DueTerm, PaymentType, Unit
from fakturace.models.subscription import SubscriptionPlan

logger = logging.getLogger(__name__)

PLANS: list[dict[str, Any]] = [
    {
        "name": settings.FREE_PLAN_NAME,
        "description": "Pro začínající podnikatele",
        "invoice_limit_monthly": settings.FREE_PLAN_INVOICE_LIMIT,
        "price_monthly": Decimal("0"),
        "price_yearly": Decimal("0"),
        "features": {"unlimited_clients": True, "pdf_export": True, "qr_payments": True},
    },
    {
        "name": "Pro",
        "description": "Neomezené faktury pro aktivní podnikání",
        "invoice_limit_monthly": 0,
        "price_monthly": Decimal("55"),
        "price_yearly": Decimal("550"),
        "features": {
            "unlimited_clients": True,
            "pdf_export": True,
            "qr_payments": True,
            "priority_support": True,
        },
    },
]

DUE_TERMS = [("7 dní", 7), ("14 dní", 14), ("30 dní", 30)]
PAYMENT_TYPES = ["Bankovní převod", "Hotově", "Kartou"]
UNITS = [("Kus", "ks"), ("Hodina", "hod"), ("Den", "den"), ("Měsíc", "měs"), ("Kilogram", "kg")]


def seed_reference_data(db: Session) -> None:
    """Insert whatever of the default rows is missing. Safe to run repeatedly."""
    for plan in PLANS:
        if db.query(SubscriptionPlan).filter(SubscriptionPlan.name == plan["name"]).first() is None:
            db.add(SubscriptionPlan(**plan))
    if db.query(DueTerm).first() is None:
        db.add_all(DueTerm(name=name, days_count=days) for name, days in DUE_TERMS)
    if db.query(PaymentType).first() is None:
        db.add_all(PaymentType(name=name) for name in PAYMENT_TYPES)
    if db.query(Unit).first() is None:
        db.add_all(Unit(name=name, abbreviation=abbreviation) for name, abbreviation in UNITS)
    db.commit()
    logger.info("Reference data seeded")

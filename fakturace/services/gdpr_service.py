"""GDPR: export of everything a user owns and erasure by anonymisation."""

from __future__ import annotations

import logging
import secrets
from typing import Any
from uuid import UUID

from sqlalchemy import inspect
from sqlalchemy.orm import Session

from fakturace.core.errors import NotFoundError
from fakturace.core.security import hash_password
from fakturace.models.auth_token import EmailVerificationToken, PasswordResetToken
from fakturace.models.client import Client
from fakturace.models.invoice import Invoice, InvoiceItem
from fakturace.models.shared import utc_now
from fakturace.models.subscription import (
    InvoiceUsage,
    SubscriptionPayment,
    SubscriptionStatusHistory,
    UserSubscription,
)
from fakturace.models.user import User
from fakturace.schemas.common import DEFAULT_COUNTRY

logger = logging.getLogger(__name__)

DELETED_USER_NAME = "Smazaný účet"
DELETED_CLIENT_NAME = "Smazaný klient"
_USER_EXPORT_EXCLUDE = {"password_hash"}


def _empty_address() -> dict[str, str]:
    return {"street": "", "house_number": "", "city": "", "zip": "", "country": DEFAULT_COUNTRY}


def _row(obj: Any, exclude: set[str] | None = None) -> dict[str, Any]:
    """Column values of a mapped instance, keyed by attribute name."""
    return {
        attr.key: getattr(obj, attr.key)
        for attr in inspect(obj).mapper.column_attrs
        if not exclude or attr.key not in exclude
    }


class GdprService:
    def __init__(self, db: Session):
        self.db = db

    def _user(self, user_id: UUID) -> User:
        user = self.db.query(User).filter(User.id == user_id).first()
        if user is None:
            raise NotFoundError("Uživatel nenalezen")
        return user

    def export(self, user_id: UUID) -> dict[str, Any]:
        user = self._user(user_id)
        invoices = self.db.query(Invoice).filter(Invoice.user_id == user_id).all()
        subscriptions = (
            self.db.query(UserSubscription).filter(UserSubscription.user_id == user_id).all()
        )
        invoice_ids = [invoice.id for invoice in invoices]
        subscription_ids = [subscription.id for subscription in subscriptions]

        def rows(model: Any, *criteria: Any) -> list[dict[str, Any]]:
            return [_row(obj) for obj in self.db.query(model).filter(*criteria).all()]

        return {
            "user": _row(user, exclude=_USER_EXPORT_EXCLUDE),
            "clients": rows(Client, Client.user_id == user_id),
            "invoices": [_row(invoice) for invoice in invoices],
            "invoice_items": rows(InvoiceItem, InvoiceItem.invoice_id.in_(invoice_ids))
            if invoice_ids
            else [],
            "password_reset_tokens": rows(
                PasswordResetToken, PasswordResetToken.user_id == user_id
            ),
            "email_verification_tokens": rows(
                EmailVerificationToken, EmailVerificationToken.user_id == user_id
            ),
            "subscriptions": {
                "user_subscriptions": [_row(s) for s in subscriptions],
                "invoice_usage": rows(InvoiceUsage, InvoiceUsage.user_id == user_id),
                "subscription_payments": rows(
                    SubscriptionPayment, SubscriptionPayment.subscription_id.in_(subscription_ids)
                )
                if subscription_ids
                else [],
                "subscription_status_history": rows(
                    SubscriptionStatusHistory,
                    SubscriptionStatusHistory.subscription_id.in_(subscription_ids),
                )
                if subscription_ids
                else [],
            },
        }

    def purge(self, user_id: UUID) -> User:
        """Anonymise the account and its clients, drop tokens, subscriptions and usage.

        Invoices stay for accounting; only their free-text notes are cleared.
        The account ends up deactivated and deleted with an unusable password.
        """
        user = self._user(user_id)
        now = utc_now()

        subscription_ids = [
            row.id
            for row in self.db.query(UserSubscription.id)
            .filter(UserSubscription.user_id == user_id)
            .all()
        ]
        if subscription_ids:
            for model in (SubscriptionPayment, SubscriptionStatusHistory):
                self.db.query(model).filter(model.subscription_id.in_(subscription_ids)).delete(
                    synchronize_session=False
                )
        for model in (PasswordResetToken, EmailVerificationToken, UserSubscription, InvoiceUsage):
            self.db.query(model).filter(model.user_id == user_id).delete(
                synchronize_session=False
            )

        self.db.query(Client).filter(Client.user_id == user_id).update(
            {
                Client.name: DELETED_CLIENT_NAME,
                Client.company_id: None,
                Client.vat_number: None,
                Client.contact_email: None,
                Client.contact_phone: None,
                Client.note: None,
                Client.address: _empty_address(),
            },
            synchronize_session=False,
        )
        self.db.query(Invoice).filter(Invoice.user_id == user_id).update(
            {Invoice.note: None}, synchronize_session=False
        )

        user.name = DELETED_USER_NAME
        user.company_id = None
        user.vat_number = None
        user.billing_details = _empty_address()
        user.contact_website = None
        user.contact_phone = None
        user.contact_email = f"deleted+{user_id}@example.invalid"
        user.bank_account = None
        user.password_hash = hash_password(secrets.token_urlsafe(32))
        user.deactivated_at = now
        user.deletion_requested_at = now
        user.deleted_at = now
        self.db.commit()
        self.db.refresh(user)
        logger.info("Purged personal data of user %s", user_id)
        return user

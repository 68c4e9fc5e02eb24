"""Tests for InvoiceLifecycleService: creation, edits and status transitions."""

from datetime import date, timedelta
from decimal import Decimal
from types import SimpleNamespace

import pytest
from sqlalchemy import text

from fakturace.core.errors import InvoiceLimitReachedError, NotFoundError, ValidationError
from fakturace.models.invoice import Invoice, InvoiceStatus
from fakturace.models.reference import PaymentType, Unit
from fakturace.schemas.invoice import InvoiceCreate, InvoiceItemCreate, InvoiceUpdate
from fakturace.services.invoice_lifecycle import (
    ALLOWED_TRANSITIONS,
    InvoiceLifecycleService,
    can_transition,
    compute_total,
    format_invoice_number,
)
from tests.conftest import make_client, make_user


def _payload(customer, **overrides) -> InvoiceCreate:
    data = {
        "client_id": customer.id,
        "issue_date": date(2026, 3, 1),
        "items": [
            InvoiceItemCreate(description="Konzultace", quantity=Decimal("2"), unit_price=100),
            InvoiceItemCreate(description="Cestovné", quantity=Decimal("1"), unit_price=50),
        ],
    }
    data.update(overrides)
    return InvoiceCreate(**data)


@pytest.fixture
def service(db_session):
    return InvoiceLifecycleService(db_session)


@pytest.fixture
def draft(service, user, customer):
    return service.create_invoice(user, _payload(customer))


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------


class TestComputeTotal:
    def test_sums_quantity_times_price(self) -> None:
        items = [
            SimpleNamespace(quantity=Decimal("2"), unit_price=Decimal("100")),
            SimpleNamespace(quantity=Decimal("1"), unit_price=Decimal("50")),
        ]
        assert compute_total(items) == Decimal("250.00")

    def test_rounds_half_up_to_cents(self) -> None:
        items = [SimpleNamespace(quantity=Decimal("0.333"), unit_price=Decimal("10.05"))]
        assert compute_total(items) == Decimal("3.35")

    def test_empty(self) -> None:
        assert compute_total([]) == Decimal("0.00")


class TestTransitionTable:
    def test_draft_moves(self) -> None:
        assert can_transition(InvoiceStatus.DRAFT, InvoiceStatus.SENT)
        assert can_transition(InvoiceStatus.DRAFT, InvoiceStatus.CANCELED)
        assert not can_transition(InvoiceStatus.DRAFT, InvoiceStatus.PAID)

    def test_paid_only_back_to_sent(self) -> None:
        assert ALLOWED_TRANSITIONS[InvoiceStatus.PAID] == frozenset({InvoiceStatus.SENT})
        assert not can_transition(InvoiceStatus.PAID, InvoiceStatus.CANCELED)

    def test_nothing_enters_overdue(self) -> None:
        for targets in ALLOWED_TRANSITIONS.values():
            assert InvoiceStatus.OVERDUE not in targets


def test_foreign_keys_enforced(db_session) -> None:
    assert db_session.execute(text("PRAGMA foreign_keys")).scalar() == 1


def test_format_invoice_number() -> None:
    assert format_invoice_number(2026, 7) == "2026-00007"
    assert format_invoice_number(2026, 123456) == "2026-123456"


# ---------------------------------------------------------------------------
# Creation and edits
# ---------------------------------------------------------------------------


class TestCreateInvoice:
    def test_creates_draft_with_total_and_due_date(self, draft) -> None:
        assert draft.status_id == InvoiceStatus.DRAFT.value
        assert draft.total_amount == Decimal("250.00")
        assert draft.invoice_number is None
        assert draft.due_date == date(2026, 3, 15)
        assert [item.order_number for item in draft.items] == [1, 2]

    def test_due_term_sets_due_date(self, service, user, customer, db_session) -> None:
        from fakturace.models.reference import DueTerm

        term = db_session.query(DueTerm).filter(DueTerm.days_count == 30).one()
        invoice = service.create_invoice(user, _payload(customer, due_term_id=term.id))
        assert invoice.due_date == date(2026, 3, 31)

    def test_unknown_due_term(self, service, user, customer) -> None:
        with pytest.raises(ValidationError, match="splatnost"):
            service.create_invoice(user, _payload(customer, due_term_id=999))

    def test_unknown_payment_type(self, service, user, customer) -> None:
        with pytest.raises(ValidationError, match="způsob platby"):
            service.create_invoice(user, _payload(customer, payment_type_id=999))
        assert service.quota.current_usage(user.id) == 0

    def test_unknown_unit(self, service, user, customer) -> None:
        items = [InvoiceItemCreate(description="Práce", unit_price=100, unit_id=999)]
        with pytest.raises(ValidationError, match="jednotka"):
            service.create_invoice(user, _payload(customer, items=items))

    def test_known_references_accepted(self, service, user, customer, db_session) -> None:
        payment_type = db_session.query(PaymentType).first()
        unit = db_session.query(Unit).first()
        items = [InvoiceItemCreate(description="Práce", unit_price=100, unit_id=unit.id)]
        invoice = service.create_invoice(
            user, _payload(customer, payment_type_id=payment_type.id, items=items)
        )
        assert invoice.payment_type_id == payment_type.id
        assert invoice.items[0].unit_id == unit.id

    def test_requires_items(self, service, user, customer) -> None:
        with pytest.raises(ValidationError):
            service.create_invoice(user, _payload(customer, items=[]))

    def test_foreign_client_rejected(self, service, user, db_session) -> None:
        other = make_user(db_session, email="jina@example.com")
        foreign = make_client(db_session, other)
        with pytest.raises(NotFoundError):
            service.create_invoice(user, _payload(foreign))

    def test_counts_usage(self, service, user, customer) -> None:
        service.create_invoice(user, _payload(customer))
        assert service.quota.current_usage(user.id) == 1

    def test_free_plan_limit(self, service, user, customer) -> None:
        for _ in range(4):
            service.create_invoice(user, _payload(customer))
        with pytest.raises(InvoiceLimitReachedError) as exc_info:
            service.create_invoice(user, _payload(customer))
        assert exc_info.value.error_code == "INVOICE_LIMIT_REACHED"
        assert service.quota.current_usage(user.id) == 4

    def test_rejected_creation_does_not_count(self, service, user, customer) -> None:
        with pytest.raises(ValidationError):
            service.create_invoice(user, _payload(customer, items=[]))
        assert service.quota.current_usage(user.id) == 0


class TestUpdateInvoice:
    def test_replaces_items_and_total(self, service, user, draft) -> None:
        updated = service.update_invoice(
            user,
            draft.id,
            InvoiceUpdate(items=[InvoiceItemCreate(description="Nová", unit_price=10)]),
        )
        assert updated.total_amount == Decimal("10.00")
        assert len(updated.items) == 1

    def test_only_drafts(self, service, user, draft) -> None:
        service.send_invoice(user.id, draft.id)
        with pytest.raises(ValidationError, match="Koncept"):
            service.update_invoice(user, draft.id, InvoiceUpdate(note="x"))

    def test_number_must_be_unique(self, service, user, customer, draft) -> None:
        other = service.create_invoice(user, _payload(customer))
        service.send_invoice(user.id, other.id)
        with pytest.raises(ValidationError, match="již použito"):
            service.update_invoice(
                user, draft.id, InvoiceUpdate(invoice_number=other.invoice_number)
            )

    def test_issue_date_moves_due_date(self, service, user, draft) -> None:
        updated = service.update_invoice(
            user, draft.id, InvoiceUpdate(issue_date=date(2026, 4, 1))
        )
        assert updated.due_date == date(2026, 4, 15)

    def test_unknown_payment_type(self, service, user, draft) -> None:
        with pytest.raises(ValidationError, match="způsob platby"):
            service.update_invoice(user, draft.id, InvoiceUpdate(payment_type_id=999))

    def test_unknown_unit(self, service, user, draft) -> None:
        items = [InvoiceItemCreate(description="Práce", unit_price=10, unit_id=999)]
        with pytest.raises(ValidationError, match="jednotka"):
            service.update_invoice(user, draft.id, InvoiceUpdate(items=items))


class TestDeleteAndDuplicate:
    def test_soft_deletes_draft(self, service, user, draft, db_session) -> None:
        service.delete_invoice(user.id, draft.id)
        assert db_session.get(Invoice, draft.id).is_deleted is True
        with pytest.raises(NotFoundError):
            service.get_invoice(user.id, draft.id)

    def test_sent_invoice_cannot_be_deleted(self, service, user, draft) -> None:
        service.send_invoice(user.id, draft.id)
        with pytest.raises(ValidationError):
            service.delete_invoice(user.id, draft.id)

    def test_duplicate_is_new_draft(self, service, user, draft) -> None:
        service.send_invoice(user.id, draft.id)
        copy = service.duplicate_invoice(user, draft.id)
        assert copy.id != draft.id
        assert copy.status_id == InvoiceStatus.DRAFT.value
        assert copy.invoice_number is None
        assert copy.total_amount == draft.total_amount
        assert service.quota.current_usage(user.id) == 2

    def test_duplicate_at_limit_rejected(self, service, user, customer, draft) -> None:
        for _ in range(3):
            service.create_invoice(user, _payload(customer))
        with pytest.raises(InvoiceLimitReachedError) as exc_info:
            service.duplicate_invoice(user, draft.id)
        assert exc_info.value.error_code == "INVOICE_LIMIT_REACHED"
        assert service.quota.current_usage(user.id) == 4
        _, total = service.list_invoices(user.id)
        assert total == 4


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------


class TestTransitions:
    def test_send_assigns_sequential_numbers(self, service, user, customer, draft) -> None:
        first = service.send_invoice(user.id, draft.id)
        second = service.send_invoice(
            user.id, service.create_invoice(user, _payload(customer)).id
        )
        assert first.invoice_number == "2026-00001"
        assert second.invoice_number == "2026-00002"
        assert first.status_id == InvoiceStatus.SENT.value

    def test_send_requires_draft(self, service, user, draft) -> None:
        service.send_invoice(user.id, draft.id)
        with pytest.raises(ValidationError):
            service.send_invoice(user.id, draft.id)

    def test_mark_paid_and_unpaid(self, service, user, draft) -> None:
        service.send_invoice(user.id, draft.id)
        paid = service.mark_paid(user.id, draft.id, date(2026, 3, 10))
        assert paid.is_paid is True
        assert paid.payment_date == date(2026, 3, 10)

        unpaid = service.mark_unpaid(user.id, draft.id)
        assert unpaid.status_id == InvoiceStatus.SENT.value
        assert unpaid.is_paid is False
        assert unpaid.payment_date is None

    def test_draft_cannot_be_paid(self, service, user, draft) -> None:
        with pytest.raises(ValidationError, match="Nelze změnit stav"):
            service.mark_paid(user.id, draft.id)

    def test_partially_paid_then_paid(self, service, user, draft) -> None:
        service.send_invoice(user.id, draft.id)
        partial = service.mark_partially_paid(user.id, draft.id)
        assert partial.status_id == InvoiceStatus.PARTIALLY_PAID.value
        assert service.mark_paid(user.id, draft.id).status_id == InvoiceStatus.PAID.value

    def test_return_to_draft(self, service, user, draft) -> None:
        service.send_invoice(user.id, draft.id)
        assert service.return_to_draft(user.id, draft.id).status_id == InvoiceStatus.DRAFT.value

    def test_paid_cannot_be_canceled(self, service, user, draft) -> None:
        service.send_invoice(user.id, draft.id)
        service.mark_paid(user.id, draft.id)
        with pytest.raises(ValidationError):
            service.cancel_invoice(user.id, draft.id)

    def test_cancel_sets_flag(self, service, user, draft) -> None:
        canceled = service.cancel_invoice(user.id, draft.id)
        assert canceled.status_id == InvoiceStatus.CANCELED.value
        assert canceled.is_canceled is True


class TestActivate:
    def test_without_number_returns_to_draft(self, service, user, draft) -> None:
        service.cancel_invoice(user.id, draft.id)
        activated = service.activate_invoice(user.id, draft.id)
        assert activated.status_id == InvoiceStatus.DRAFT.value
        assert activated.is_canceled is False

    def test_with_free_number_returns_to_sent(self, service, user, draft) -> None:
        service.send_invoice(user.id, draft.id)
        service.cancel_invoice(user.id, draft.id)
        activated = service.activate_invoice(user.id, draft.id)
        assert activated.status_id == InvoiceStatus.SENT.value
        assert activated.invoice_number == "2026-00001"
        assert activated.is_canceled is False

    def test_colliding_number_is_dropped(self, service, user, customer, draft) -> None:
        service.send_invoice(user.id, draft.id)
        service.cancel_invoice(user.id, draft.id)

        other = service.create_invoice(user, _payload(customer))
        service.update_invoice(user, other.id, InvoiceUpdate(invoice_number="2026-00001"))
        service.send_invoice(user.id, other.id)

        activated = service.activate_invoice(user.id, draft.id)
        assert activated.status_id == InvoiceStatus.DRAFT.value
        assert activated.invoice_number is None
        assert activated.is_canceled is False

    def test_only_canceled(self, service, user, draft) -> None:
        with pytest.raises(ValidationError):
            service.activate_invoice(user.id, draft.id)


class TestChangeStatus:
    def test_dispatches_to_send(self, service, user, draft) -> None:
        sent = service.change_status(user.id, draft.id, InvoiceStatus.SENT)
        assert sent.invoice_number is not None

    def test_paid_to_sent_unmarks_payment(self, service, user, draft) -> None:
        service.send_invoice(user.id, draft.id)
        service.mark_paid(user.id, draft.id)
        invoice = service.change_status(user.id, draft.id, InvoiceStatus.SENT)
        assert invoice.is_paid is False

    def test_overdue_is_never_set(self, service, user, draft) -> None:
        service.send_invoice(user.id, draft.id)
        with pytest.raises(ValidationError):
            service.change_status(user.id, draft.id, InvoiceStatus.OVERDUE)

    def test_canceled_needs_activate(self, service, user, draft) -> None:
        service.cancel_invoice(user.id, draft.id)
        with pytest.raises(ValidationError, match="aktivací"):
            service.change_status(user.id, draft.id, InvoiceStatus.DRAFT)

    def test_same_status_is_noop(self, service, user, draft) -> None:
        assert service.change_status(user.id, draft.id, InvoiceStatus.DRAFT).id == draft.id


class TestQueries:
    def test_overdue_is_derived(self, service, user, customer) -> None:
        old = service.create_invoice(
            user, _payload(customer, issue_date=date.today() - timedelta(days=60))
        )
        service.send_invoice(user.id, old.id)
        service.create_invoice(user, _payload(customer, issue_date=date.today()))

        overdue = service.list_overdue(user.id)
        assert [invoice.id for invoice in overdue] == [old.id]
        assert overdue[0].is_overdue is True
        assert overdue[0].status_id == InvoiceStatus.SENT.value

    def test_statistics(self, service, user, customer) -> None:
        paid = service.create_invoice(user, _payload(customer))
        service.send_invoice(user.id, paid.id)
        service.mark_paid(user.id, paid.id)
        service.create_invoice(user, _payload(customer))
        canceled = service.create_invoice(user, _payload(customer))
        service.cancel_invoice(user.id, canceled.id)

        stats = service.statistics(user.id)
        assert stats["total"] == 3
        assert stats["paid"] == 1
        assert stats["unpaid"] == 1
        assert stats["canceled"] == 1
        assert stats["total_revenue"] == Decimal("250.00")
        assert stats["unpaid_amount"] == Decimal("250.00")

    def test_list_excludes_other_users(self, service, user, customer, db_session) -> None:
        service.create_invoice(user, _payload(customer))
        other = make_user(db_session, email="jiny@example.com")
        items, total = service.list_invoices(other.id)
        assert items == []
        assert total == 0

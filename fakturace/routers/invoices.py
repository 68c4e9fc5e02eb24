from datetime import date
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.orm import Session

from fakturace.core.auth import get_current_user
from fakturace.core.database import get_db
from fakturace.core.errors import ValidationError
from fakturace.models.invoice import Invoice, InvoiceStatus
from fakturace.models.user import User
from fakturace.repositories.reference_repository import ReferenceRepository
from fakturace.schemas.common import ApiResponse, ok
from fakturace.schemas.invoice import (
    InvoiceCreate,
    InvoiceResponse,
    InvoiceStatistics,
    InvoiceStatusChange,
    InvoiceUpdate,
    MarkPaidRequest,
    SpaydResponse,
)
from fakturace.services.audit_service import AuditService
from fakturace.services.invoice_lifecycle import InvoiceLifecycleService
from fakturace.services.pdf_service import PdfService
from fakturace.services.spayd import czech_account_to_iban, invoice_spayd

router = APIRouter()

NOT_FOUND = {404: {"description": "Invoice not found"}}
TRANSITION_ERRORS = {
    400: {"description": "Transition not allowed from the current status"},
    404: {"description": "Invoice not found"},
}


def _audit_transition(
    db: Session, request: Request, user: User, invoice: Invoice, old_status: int
) -> None:
    AuditService(db).log_status_change(
        "invoice", invoice.id, user.id, old_status, invoice.status_id, request=request
    )


@router.get(
    "",
    response_model=ApiResponse[list[InvoiceResponse]],
    summary="List invoices",
    responses={401: {"description": "Not signed in"}},
)
async def list_invoices(
    response: Response,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    status_id: list[int] | None = Query(default=None),
    client_id: UUID | None = Query(default=None),
    date_from: date | None = Query(default=None),
    date_to: date | None = Query(default=None),
    overdue: bool = Query(default=False),
    include_canceled: bool = Query(default=True),
    order_by: str | None = Query(default=None),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> dict[str, Any]:
    """List the user's invoices; deleted invoices are never included."""
    invoices, total = InvoiceLifecycleService(db).list_invoices(
        user.id,
        skip=skip,
        limit=limit,
        order_by=order_by,
        status_ids=status_id,
        client_id=client_id,
        date_from=date_from,
        date_to=date_to,
        overdue=overdue,
        include_canceled=include_canceled,
    )
    response.headers["X-Total-Count"] = str(total)
    return ok(data=invoices)


@router.post(
    "",
    response_model=ApiResponse[InvoiceResponse],
    status_code=201,
    summary="Create invoice",
    responses={
        400: {"description": "Missing items or invalid data"},
        403: {"description": "Monthly invoice limit reached"},
        404: {"description": "Client not found"},
    },
)
async def create_invoice(
    data: InvoiceCreate,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> dict[str, Any]:
    invoice = InvoiceLifecycleService(db).create_invoice(user, data)
    AuditService(db).log(
        "invoice.create",
        "invoice",
        invoice.id,
        user_id=user.id,
        request=request,
        metadata={"total_amount": str(invoice.total_amount), "items": len(invoice.items)},
    )
    return ok(data=invoice, message="Faktura byla vytvořena")


@router.get("/overdue", response_model=ApiResponse[list[InvoiceResponse]], summary="Overdue")
async def list_overdue(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> dict[str, Any]:
    """Draft or sent invoices past their due date, oldest due first."""
    return ok(data=InvoiceLifecycleService(db).list_overdue(user.id))


@router.get("/unpaid", response_model=ApiResponse[list[InvoiceResponse]], summary="Unpaid")
async def list_unpaid(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> dict[str, Any]:
    return ok(data=InvoiceLifecycleService(db).list_unpaid(user.id))


@router.get("/paid", response_model=ApiResponse[list[InvoiceResponse]], summary="Paid")
async def list_paid(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> dict[str, Any]:
    return ok(data=InvoiceLifecycleService(db).list_paid(user.id))


@router.get("/canceled", response_model=ApiResponse[list[InvoiceResponse]], summary="Canceled")
async def list_canceled(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> dict[str, Any]:
    return ok(data=InvoiceLifecycleService(db).list_canceled(user.id))


@router.get(
    "/statistics",
    response_model=ApiResponse[InvoiceStatistics],
    summary="Invoice statistics",
)
async def invoice_statistics(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> dict[str, Any]:
    return ok(data=InvoiceLifecycleService(db).statistics(user.id))


@router.get(
    "/{invoice_id}",
    response_model=ApiResponse[InvoiceResponse],
    summary="Get invoice",
    responses=NOT_FOUND,
)
async def get_invoice(
    invoice_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> dict[str, Any]:
    return ok(data=InvoiceLifecycleService(db).get_invoice(user.id, invoice_id))


@router.put(
    "/{invoice_id}",
    response_model=ApiResponse[InvoiceResponse],
    summary="Update draft invoice",
    responses={
        400: {"description": "Invoice is not a draft, or invalid data"},
        404: {"description": "Invoice not found"},
    },
)
async def update_invoice(
    invoice_id: UUID,
    data: InvoiceUpdate,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> dict[str, Any]:
    service = InvoiceLifecycleService(db)
    old_total = str(service.get_invoice(user.id, invoice_id).total_amount)
    invoice = service.update_invoice(user, invoice_id, data)
    AuditService(db).log_update(
        "invoice",
        invoice.id,
        user.id,
        {"total_amount": old_total},
        {"total_amount": str(invoice.total_amount)},
        request=request,
    )
    return ok(data=invoice, message="Faktura byla upravena")


@router.delete(
    "/{invoice_id}",
    response_model=ApiResponse[None],
    summary="Delete invoice",
    responses={
        400: {"description": "Only drafts and canceled invoices can be deleted"},
        404: {"description": "Invoice not found"},
    },
)
async def delete_invoice(
    invoice_id: UUID,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> dict[str, Any]:
    InvoiceLifecycleService(db).delete_invoice(user.id, invoice_id)
    AuditService(db).log("invoice.delete", "invoice", invoice_id, user_id=user.id, request=request)
    return ok(message="Faktura byla smazána")


@router.post(
    "/{invoice_id}/send",
    response_model=ApiResponse[InvoiceResponse],
    summary="Send invoice",
    responses=TRANSITION_ERRORS,
)
async def send_invoice(
    invoice_id: UUID,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> dict[str, Any]:
    """Move a draft to sent, assigning the next invoice number if needed."""
    invoice = InvoiceLifecycleService(db).send_invoice(user.id, invoice_id)
    _audit_transition(db, request, user, invoice, InvoiceStatus.DRAFT.value)
    return ok(data=invoice, message="Faktura byla odeslána")


@router.post(
    "/{invoice_id}/mark-paid",
    response_model=ApiResponse[InvoiceResponse],
    summary="Mark invoice paid",
    responses=TRANSITION_ERRORS,
)
async def mark_paid(
    invoice_id: UUID,
    request: Request,
    data: MarkPaidRequest | None = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> dict[str, Any]:
    service = InvoiceLifecycleService(db)
    old_status = service.get_invoice(user.id, invoice_id).status_id
    invoice = service.mark_paid(user.id, invoice_id, data.payment_date if data else None)
    _audit_transition(db, request, user, invoice, old_status)
    return ok(data=invoice, message="Faktura byla označena jako zaplacená")


@router.post(
    "/{invoice_id}/mark-unpaid",
    response_model=ApiResponse[InvoiceResponse],
    summary="Mark invoice unpaid",
    responses=TRANSITION_ERRORS,
)
async def mark_unpaid(
    invoice_id: UUID,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> dict[str, Any]:
    invoice = InvoiceLifecycleService(db).mark_unpaid(user.id, invoice_id)
    _audit_transition(db, request, user, invoice, InvoiceStatus.PAID.value)
    return ok(data=invoice, message="Faktura byla označena jako nezaplacená")


@router.post(
    "/{invoice_id}/partially-paid",
    response_model=ApiResponse[InvoiceResponse],
    summary="Mark invoice partially paid",
    responses=TRANSITION_ERRORS,
)
async def mark_partially_paid(
    invoice_id: UUID,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> dict[str, Any]:
    service = InvoiceLifecycleService(db)
    old_status = service.get_invoice(user.id, invoice_id).status_id
    invoice = service.mark_partially_paid(user.id, invoice_id)
    _audit_transition(db, request, user, invoice, old_status)
    return ok(data=invoice)


@router.post(
    "/{invoice_id}/return-to-draft",
    response_model=ApiResponse[InvoiceResponse],
    summary="Return invoice to draft",
    responses=TRANSITION_ERRORS,
)
async def return_to_draft(
    invoice_id: UUID,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> dict[str, Any]:
    invoice = InvoiceLifecycleService(db).return_to_draft(user.id, invoice_id)
    _audit_transition(db, request, user, invoice, InvoiceStatus.SENT.value)
    return ok(data=invoice)


@router.post(
    "/{invoice_id}/cancel",
    response_model=ApiResponse[InvoiceResponse],
    summary="Cancel invoice",
    responses=TRANSITION_ERRORS,
)
async def cancel_invoice(
    invoice_id: UUID,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> dict[str, Any]:
    service = InvoiceLifecycleService(db)
    old_status = service.get_invoice(user.id, invoice_id).status_id
    invoice = service.cancel_invoice(user.id, invoice_id)
    _audit_transition(db, request, user, invoice, old_status)
    return ok(data=invoice, message="Faktura byla stornována")


@router.post(
    "/{invoice_id}/activate",
    response_model=ApiResponse[InvoiceResponse],
    summary="Reactivate canceled invoice",
    responses=TRANSITION_ERRORS,
)
async def activate_invoice(
    invoice_id: UUID,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> dict[str, Any]:
    """Bring a canceled invoice back as a draft or as sent."""
    invoice = InvoiceLifecycleService(db).activate_invoice(user.id, invoice_id)
    _audit_transition(db, request, user, invoice, InvoiceStatus.CANCELED.value)
    return ok(data=invoice, message="Faktura byla obnovena")


@router.post(
    "/{invoice_id}/status",
    response_model=ApiResponse[InvoiceResponse],
    summary="Change invoice status",
    responses=TRANSITION_ERRORS,
)
async def change_status(
    invoice_id: UUID,
    data: InvoiceStatusChange,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> dict[str, Any]:
    service = InvoiceLifecycleService(db)
    old_status = service.get_invoice(user.id, invoice_id).status_id
    invoice = service.change_status(user.id, invoice_id, data.status_id)
    _audit_transition(db, request, user, invoice, old_status)
    return ok(data=invoice)


@router.post(
    "/{invoice_id}/duplicate",
    response_model=ApiResponse[InvoiceResponse],
    status_code=201,
    summary="Duplicate invoice",
    responses={
        400: {"description": "Source invoice has no items"},
        403: {"description": "Monthly invoice limit reached"},
        404: {"description": "Invoice not found"},
    },
)
async def duplicate_invoice(
    invoice_id: UUID,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> dict[str, Any]:
    invoice = InvoiceLifecycleService(db).duplicate_invoice(user, invoice_id)
    AuditService(db).log(
        "invoice.duplicate",
        "invoice",
        invoice.id,
        user_id=user.id,
        request=request,
        metadata={"source_invoice_id": str(invoice_id)},
    )
    return ok(data=invoice, message="Faktura byla zkopírována")


@router.get(
    "/{invoice_id}/spayd",
    response_model=ApiResponse[SpaydResponse],
    summary="QR payment string",
    responses={
        400: {"description": "No bank account in the profile"},
        404: {"description": "Invoice not found"},
    },
)
async def get_invoice_spayd(
    invoice_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> dict[str, Any]:
    invoice = InvoiceLifecycleService(db).get_invoice(user.id, invoice_id)
    try:
        spayd = invoice_spayd(invoice, user)
        iban = czech_account_to_iban(str(user.bank_account))
    except ValueError:
        raise ValidationError("V profilu chybí platný bankovní účet") from None
    return ok(
        data={
            "spayd": spayd,
            "iban": iban,
            "amount": invoice.total_amount,
            "currency": invoice.currency,
            "variable_symbol": invoice.invoice_number,
        }
    )


@router.get(
    "/{invoice_id}/pdf",
    summary="Download invoice PDF",
    responses=NOT_FOUND,
)
async def download_invoice_pdf(
    invoice_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> Response:
    invoice = InvoiceLifecycleService(db).get_invoice(user.id, invoice_id)
    units = {
        unit.id: str(unit.abbreviation or unit.name) for unit in ReferenceRepository(db).get_units()
    }
    pdf_bytes = PdfService().generate_invoice_pdf(invoice, user, units)
    filename = invoice.invoice_number or f"koncept-{invoice.id}"
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="faktura_{filename}.pdf"'},
    )

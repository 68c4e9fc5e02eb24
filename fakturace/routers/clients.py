from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.orm import Session

from fakturace.core.auth import get_current_user
from fakturace.core.database import get_db
from fakturace.core.errors import NotFoundError, ValidationError
from fakturace.models.client import Client
from fakturace.models.user import User
from fakturace.repositories.client_repository import ClientRepository
from fakturace.schemas.client import ClientCreate, ClientResponse, ClientUpdate
from fakturace.schemas.common import ApiResponse, ok
from fakturace.services.audit_service import AuditService
from fakturace.services.validation import is_valid_ico

router = APIRouter()

CLIENT_NOT_FOUND = "Klient nenalezen"


def _check_company_id(company_id: str | None) -> None:
    if company_id and not is_valid_ico(company_id):
        raise ValidationError("Neplatné IČO")


def _audited_fields(client: Client) -> dict[str, Any]:
    return {
        "name": client.name,
        "company_id": client.company_id,
        "vat_number": client.vat_number,
        "contact_email": client.contact_email,
    }


def _get_client(repo: ClientRepository, client_id: UUID, user: User) -> Client:
    client = repo.get_by_id(client_id, user.id)
    if client is None:
        raise NotFoundError(CLIENT_NOT_FOUND)
    return client


@router.get(
    "",
    response_model=ApiResponse[list[ClientResponse]],
    summary="List clients",
    responses={401: {"description": "Not signed in"}},
)
async def list_clients(
    response: Response,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    search: str | None = Query(default=None),
    order_by: str | None = Query(default=None),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> dict[str, Any]:
    repo = ClientRepository(db)
    response.headers["X-Total-Count"] = str(repo.count(user.id, search=search))
    return ok(data=repo.get_all(user.id, skip=skip, limit=limit, search=search, order_by=order_by))


@router.post(
    "",
    response_model=ApiResponse[ClientResponse],
    status_code=201,
    summary="Create client",
    responses={400: {"description": "Invalid client data"}},
)
async def create_client(
    data: ClientCreate,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> dict[str, Any]:
    _check_company_id(data.company_id)
    client = ClientRepository(db).create(data, user.id)
    AuditService(db).log("client.create", "client", client.id, user_id=user.id, request=request)
    return ok(data=client, message="Klient byl vytvořen")


@router.get(
    "/{client_id}",
    response_model=ApiResponse[ClientResponse],
    summary="Get client",
    responses={404: {"description": "Client not found"}},
)
async def get_client(
    client_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> dict[str, Any]:
    return ok(data=_get_client(ClientRepository(db), client_id, user))


@router.put(
    "/{client_id}",
    response_model=ApiResponse[ClientResponse],
    summary="Update client",
    responses={
        400: {"description": "Invalid client data"},
        404: {"description": "Client not found"},
    },
)
async def update_client(
    client_id: UUID,
    data: ClientUpdate,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> dict[str, Any]:
    _check_company_id(data.company_id)
    repo = ClientRepository(db)
    client = _get_client(repo, client_id, user)
    old_data = _audited_fields(client)
    client = repo.update(client_id, data, user.id)
    AuditService(db).log_update(
        "client", client_id, user.id, old_data, _audited_fields(client), request=request
    )
    return ok(data=client, message="Klient byl upraven")


@router.delete(
    "/{client_id}",
    response_model=ApiResponse[None],
    summary="Delete client",
    responses={
        400: {"description": "Client is referenced by invoices"},
        404: {"description": "Client not found"},
    },
)
async def delete_client(
    client_id: UUID,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> dict[str, Any]:
    repo = ClientRepository(db)
    _get_client(repo, client_id, user)
    if repo.invoice_count(client_id) > 0:
        raise ValidationError("Nelze smazat klienta s existujícími fakturami")
    repo.delete(client_id, user.id)
    AuditService(db).log("client.delete", "client", client_id, user_id=user.id, request=request)
    return ok(message="Klient byl smazán")

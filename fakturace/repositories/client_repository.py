from uuid import UUID

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from fakturace.core.sorting import apply_order_by
from fakturace.models.client import Client
from fakturace.models.invoice import Invoice
from fakturace.schemas.client import ClientCreate, ClientUpdate

SORTABLE_FIELDS = {"name", "company_id", "created_at", "updated_at"}


class ClientRepository:
    def __init__(self, db: Session):
        self.db = db

    def _scoped(self, user_id: UUID, search: str | None = None):  # type: ignore[no-untyped-def]
        query = self.db.query(Client).filter(Client.user_id == user_id)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(
                or_(
                    Client.name.ilike(pattern),
                    Client.company_id.ilike(pattern),
                    Client.contact_email.ilike(pattern),
                )
            )
        return query

    def get_all(
        self,
        user_id: UUID,
        skip: int = 0,
        limit: int = 100,
        search: str | None = None,
        order_by: str | None = None,
    ) -> list[Client]:
        query = apply_order_by(
            self._scoped(user_id, search),
            Client,
            order_by,
            default_field="name",
            default_direction="asc",
            allowed_fields=SORTABLE_FIELDS,
        )
        return query.offset(skip).limit(limit).all()

    def count(self, user_id: UUID, search: str | None = None) -> int:
        return self._scoped(user_id, search).count()

    def get_by_id(self, client_id: UUID, user_id: UUID | None = None) -> Client | None:
        query = self.db.query(Client).filter(Client.id == client_id)
        if user_id is not None:
            query = query.filter(Client.user_id == user_id)
        return query.first()

    def create(self, data: ClientCreate, user_id: UUID) -> Client:
        client = Client(**data.model_dump(mode="json"), user_id=user_id)
        self.db.add(client)
        self.db.commit()
        self.db.refresh(client)
        return client

    def update(self, client_id: UUID, data: ClientUpdate, user_id: UUID) -> Client | None:
        client = self.get_by_id(client_id, user_id)
        if not client:
            return None
        for key, value in data.model_dump(mode="json", exclude_unset=True).items():
            setattr(client, key, value)
        self.db.commit()
        self.db.refresh(client)
        return client

    def delete(self, client_id: UUID, user_id: UUID) -> bool:
        client = self.get_by_id(client_id, user_id)
        if not client:
            return False
        self.db.delete(client)
        self.db.commit()
        return True

    def invoice_count(self, client_id: UUID) -> int:
        """Invoices referencing the client, soft-deleted ones included."""
        return (
            self.db.query(func.count(Invoice.id)).filter(Invoice.client_id == client_id).scalar()
            or 0
        )

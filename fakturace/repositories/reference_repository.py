from sqlalchemy.orm import Session

from fakturace.models.reference import DueTerm, PaymentType, Unit


class ReferenceRepository:
    """Read access to the shared lookup tables."""

    def __init__(self, db: Session):
        self.db = db

    def get_due_terms(self) -> list[DueTerm]:
        return (
            self.db.query(DueTerm)
            .filter(DueTerm.is_active.is_(True))
            .order_by(DueTerm.days_count.asc())
            .all()
        )

    def get_due_term(self, due_term_id: int) -> DueTerm | None:
        return self.db.query(DueTerm).filter(DueTerm.id == due_term_id).first()

    def get_payment_types(self) -> list[PaymentType]:
        return (
            self.db.query(PaymentType)
            .filter(PaymentType.is_active.is_(True))
            .order_by(PaymentType.id.asc())
            .all()
        )

    def get_payment_type(self, payment_type_id: int) -> PaymentType | None:
        return self.db.query(PaymentType).filter(PaymentType.id == payment_type_id).first()

    def get_units(self) -> list[Unit]:
        return self.db.query(Unit).filter(Unit.is_active.is_(True)).order_by(Unit.id.asc()).all()

    def get_unit(self, unit_id: int) -> Unit | None:
        return self.db.query(Unit).filter(Unit.id == unit_id).first()

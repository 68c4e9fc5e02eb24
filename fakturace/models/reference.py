"""Lookup tables shared by all users: due terms, payment types and units."""

from sqlalchemy import Boolean, Column, Integer, String

from fakturace.core.database import Base


class DueTerm(Base):
    __tablename__ = "due_terms"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    days_count = Column(Integer, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)


class PaymentType(Base):
    __tablename__ = "payment_types"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)


class Unit(Base):
    __tablename__ = "units"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    abbreviation = Column(String(20), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

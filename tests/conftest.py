"""Shared test fixtures for all test modules."""

import contextlib

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import fakturace.models  # noqa: F401
from fakturace.core import database as db_module
from fakturace.core.database import Base
from fakturace.core.rate_limiter import login_limiter, password_reset_limiter, register_limiter
from fakturace.core.security import create_session_token, hash_password
from fakturace.core.seed import seed_reference_data
from fakturace.models.client import Client
from fakturace.models.shared import utc_now
from fakturace.models.user import User, UserRole
from fakturace.services.subscription_service import SubscriptionService

# In-memory SQLite with StaticPool so every session sees the same database.
_test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


@event.listens_for(_test_engine, "connect")
def _enable_foreign_keys(dbapi_connection, _record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


_TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_test_engine)

TEST_PASSWORD = "tajneheslo123"


@pytest.fixture(autouse=True)
def setup_database():
    """Create tables and reference data before each test and wipe them after.

    Patches the module-level engine and SessionLocal so application code
    uses the in-memory test database.
    """
    original_engine = db_module.engine
    original_session = db_module.SessionLocal
    db_module.engine = _test_engine
    db_module.SessionLocal = _TestSessionLocal

    Base.metadata.create_all(bind=_test_engine)
    session = _TestSessionLocal()
    try:
        seed_reference_data(session)
    finally:
        session.close()

    yield
    with _test_engine.connect() as conn:
        conn.execute(text("PRAGMA foreign_keys = OFF"))
        for table in reversed(Base.metadata.sorted_tables):
            with contextlib.suppress(OperationalError):
                conn.execute(table.delete())
        conn.commit()
        conn.execute(text("PRAGMA foreign_keys = ON"))
        conn.commit()

    db_module.engine = original_engine
    db_module.SessionLocal = original_session


@pytest.fixture(autouse=True)
def _reset_rate_limiters():
    for limiter in (register_limiter, login_limiter, password_reset_limiter):
        limiter.reset()
    yield
    for limiter in (register_limiter, login_limiter, password_reset_limiter):
        limiter.reset()


@pytest.fixture
def client():
    from fakturace.main import app

    return TestClient(app)


@pytest.fixture
def db_session():
    """Session for direct service and repository testing."""
    gen = db_module.get_db()
    db = next(gen)
    try:
        yield db
    finally:
        for _ in gen:
            pass


def make_user(
    db: Session,
    email: str = "novak@example.com",
    name: str = "Jan Novák",
    role: UserRole = UserRole.USER,
    activated: bool = True,
    with_subscription: bool = True,
    **fields,
) -> User:
    """Insert an account, activated and on the Free plan unless told otherwise."""
    user = User(
        name=name,
        contact_email=email,
        password_hash=hash_password(TEST_PASSWORD),
        role=role.value,
        activated_at=utc_now() if activated else None,
        **fields,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    if with_subscription:
        SubscriptionService(db).create_free_subscription(user.id)
    return user


def make_client(db: Session, user: User, name: str = "Odběratel s.r.o.", **fields) -> Client:
    record = Client(
        user_id=user.id,
        name=name,
        company_id=fields.pop("company_id", "27074358"),
        address=fields.pop(
            "address",
            {
                "street": "Dlouhá",
                "house_number": "12",
                "city": "Praha",
                "zip": "11000",
                "country": "Česká republika",
            },
        ),
        **fields,
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_session_token(user.id, user.role)}"}


@pytest.fixture
def user(db_session):
    return make_user(db_session, bank_account="19-2000145399/0800")


@pytest.fixture
def admin_user(db_session):
    return make_user(db_session, email="admin@example.com", name="Admin", role=UserRole.ADMIN)


@pytest.fixture
def customer(db_session, user):
    return make_client(db_session, user)

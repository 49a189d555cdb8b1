"""Shared pytest fixtures: in-memory database, API client and signed-in principals."""

import os
import uuid
from datetime import date
from decimal import Decimal

import pytest
from dotenv import load_dotenv

# Load .env first, then make sure the app can start without one
load_dotenv()
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ["ENVIRONMENT"] = "test"
os.environ["DEBUG"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"

from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from schoolfees.main import app
from schoolfees.config import settings
from schoolfees.database import Base, get_db
from schoolfees.core.security import create_access_token
from schoolfees.models import FeeInvoice, FeeStructure, Student
from schoolfees.models.enums import FeeFrequency, UserRole
from schoolfees.services.billing_rules import derive_status

TEST_DATABASE_URL = "sqlite+aiosqlite://"


def _sqlite_engine():
    engine = create_async_engine(TEST_DATABASE_URL, poolclass=StaticPool)

    # Let SQLAlchemy issue BEGIN itself so SAVEPOINT (begin_nested) works on SQLite
    @event.listens_for(engine.sync_engine, "connect")
    def _disable_implicit_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


@pytest.fixture
async def engine():
    """Fresh in-memory database per test."""
    engine = _sqlite_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db(session_factory):
    """Session for service-level tests. Do not mix with async_client in one test."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def api_base() -> str:
    """Base URL for API requests."""
    return f"http://test{settings.API_V1_PREFIX}"


@pytest.fixture
async def async_client(session_factory, api_base: str):
    """Async HTTP client with get_db bound to the in-memory database."""

    async def _get_test_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = _get_test_db
    transport = ASGITransport(app=app)
    client = AsyncClient(transport=transport, base_url=api_base, timeout=30.0)
    yield client
    await client.aclose()
    app.dependency_overrides.pop(get_db, None)


def auth_headers(role: UserRole, subject: uuid.UUID = None) -> dict:
    token = create_access_token({"sub": str(subject or uuid.uuid4()), "role": role.value})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_headers():
    """Build a bearer header for any role, optionally for a fixed principal id."""
    return auth_headers


@pytest.fixture
def admin_headers() -> dict:
    return auth_headers(UserRole.ADMIN)


@pytest.fixture
def teacher_headers() -> dict:
    return auth_headers(UserRole.TEACHER)


# ---------------------------------------------------------------------------
# Data builders (add + flush; the caller decides when to commit)
# ---------------------------------------------------------------------------

async def _add_student(session, full_name="Ali Raza", class_id=None, is_active=True, **kwargs) -> Student:
    student = Student(
        full_name=full_name,
        class_id=class_id,
        is_active=is_active,
        admission_no=kwargs.pop("admission_no", f"ADM-{uuid.uuid4().hex[:6]}"),
        **kwargs,
    )
    session.add(student)
    await session.flush()
    return student


async def _add_structure(
    session,
    name="Tuition",
    amount="1000",
    frequency=FeeFrequency.MONTHLY,
    applicable_classes=None,
) -> FeeStructure:
    structure = FeeStructure(
        name=name,
        amount=Decimal(amount),
        frequency=frequency,
        applicable_classes=[str(c) for c in (applicable_classes or [])],
    )
    session.add(structure)
    await session.flush()
    return structure


async def _add_invoice(
    session,
    student_id,
    billing_period="2024-01",
    total_due="1000",
    amount_paid="0",
    due_date=date(2024, 1, 10),
    arrears="0",
    today=date(2024, 1, 5),
) -> FeeInvoice:
    total = Decimal(total_due)
    paid = Decimal(amount_paid)
    invoice = FeeInvoice(
        student_id=student_id,
        billing_period=billing_period,
        base_amount=total - Decimal(arrears),
        arrears=Decimal(arrears),
        late_fine=Decimal("0"),
        discount=Decimal("0"),
        total_due=total,
        amount_paid=paid,
        due_date=due_date,
        status=derive_status(total, paid, due_date, today),
    )
    session.add(invoice)
    await session.flush()
    return invoice


@pytest.fixture
def add_student():
    return _add_student


@pytest.fixture
def add_structure():
    return _add_structure


@pytest.fixture
def add_invoice():
    return _add_invoice

"""
Shared test fixtures for the library staff test suite.

Async throughout (aiosqlite + AsyncSession). Every test gets its own
in-memory database.
"""

import os
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, AsyncGenerator, Optional

import pytest

# Override environment BEFORE importing application modules
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
# CORS fix (JSON format)
os.environ["CORS_ORIGINS"] = '["*"]'
os.environ["SECRET_KEY"] = "test-secret-key-not-for-production"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["BREACH_CHECK_ENABLED"] = "false"

from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from library_staff.api.v1.deps import get_audit_sink, get_db
from library_staff.db.base import Base
from library_staff.domain.staff import Staff
from library_staff.domain.value_objects import Email, Password, StaffId, StaffName
from library_staff.main import app
from library_staff.repositories.password_history import SqlPasswordHistoryRepository
from library_staff.repositories.staff import SqlStaffRepository
from library_staff.services.password_history import PasswordHistoryService

ADMIN_PASSWORD = "Adm1n!Password#2024"
STAFF_PASSWORD = "Staff!Password#2024"


@dataclass
class AuditEvent:
    event: str
    actor_id: Optional[str]
    target_id: Optional[str]
    timestamp: datetime
    details: dict[str, Any] = field(default_factory=dict)


class RecordingAuditSink:
    """Keeps every audit event in memory so tests can assert on them."""

    def __init__(self) -> None:
        self.events: list[AuditEvent] = []

    def record(self, event, actor_id, target_id, timestamp, details=None) -> None:
        self.events.append(AuditEvent(event, actor_id, target_id, timestamp, details or {}))

    def of(self, event: str) -> list[AuditEvent]:
        return [e for e in self.events if e.event == event]


# ── Database ────────────────────────────────────────────────────────
@pytest.fixture
async def engine():
    test_engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Return a raw database session for direct queries in tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def audit_sink() -> RecordingAuditSink:
    return RecordingAuditSink()


# ── HTTP client ─────────────────────────────────────────────────────
@pytest.fixture
async def client_factory(session_factory, audit_sink):
    """Build independent clients (separate cookie jars) against one database."""

    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_audit_sink] = lambda: audit_sink

    clients: list[AsyncClient] = []

    def _make() -> AsyncClient:
        client = AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
        clients.append(client)
        return client

    yield _make

    for client in clients:
        await client.aclose()
    app.dependency_overrides.clear()


@pytest.fixture
async def async_client(client_factory) -> AsyncClient:
    """Return a httpx AsyncClient wired to the app."""
    return client_factory()


# ── Data helpers ────────────────────────────────────────────────────
async def create_staff(
    session_factory,
    email: str = "staff@library.example.com",
    password: str = STAFF_PASSWORD,
    name: str = "Test Staff",
    is_admin: bool = False,
) -> Staff:
    async with session_factory() as session:
        hashed = Password.from_plain_text(password)
        staff = Staff.create(
            StaffId.generate(), Email.create(email), hashed, StaffName.create(name), is_admin
        )
        await SqlStaffRepository(session).add(staff)
        await PasswordHistoryService(SqlPasswordHistoryRepository(session)).add_to_history(
            staff.id, hashed.hashed_value
        )
        await session.commit()
        return staff


async def login(client: AsyncClient, email: str, password: str):
    return await client.post("/api/auth/login", json={"email": email, "password": password})


@pytest.fixture
async def admin(session_factory) -> Staff:
    return await create_staff(
        session_factory,
        email="admin@library.example.com",
        password=ADMIN_PASSWORD,
        name="Head Librarian",
        is_admin=True,
    )


@pytest.fixture
async def staff_member(session_factory) -> Staff:
    return await create_staff(session_factory)


@pytest.fixture
async def admin_client(client_factory, admin) -> AsyncClient:
    client = client_factory()
    response = await login(client, admin.email.value, ADMIN_PASSWORD)
    assert response.status_code == 200, response.text
    return client


@pytest.fixture
async def staff_client(client_factory, staff_member) -> AsyncClient:
    client = client_factory()
    response = await login(client, staff_member.email.value, STAFF_PASSWORD)
    assert response.status_code == 200, response.text
    return client

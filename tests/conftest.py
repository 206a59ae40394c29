"""
Mataam Back Office - Test Configuration

Pytest fixtures and configuration.

Tests run against an in-memory SQLite database through aiosqlite. Point
TEST_DATABASE_URL at a PostgreSQL database (postgresql+asyncpg://...) to run
the same suite against the production dialect.
"""

import os
from datetime import date
from decimal import Decimal
from typing import AsyncGenerator
from uuid import uuid4

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from app import models  # noqa: F401
from app.database import Base, get_async_session
from app.models.branch import Branch
from app.models.payroll import Employee, EmploymentStatus
from app.models.user import User, UserRole
from app.utils.security import create_access_token
from main import app


TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:")


@pytest_asyncio.fixture(scope="function")
async def test_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create a fresh schema for each test."""
    if TEST_DATABASE_URL.startswith("sqlite"):
        engine = create_async_engine(
            TEST_DATABASE_URL,
            echo=False,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    else:
        engine = create_async_engine(TEST_DATABASE_URL, echo=False, pool_pre_ping=True)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(test_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    session_maker = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )
    async with session_maker() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client with database session override."""

    async def override_get_session():
        yield db_session

    app.dependency_overrides[get_async_session] = override_get_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ===========================================
# DATA FIXTURES
# ===========================================

async def _save(db_session: AsyncSession, obj):
    db_session.add(obj)
    await db_session.commit()
    await db_session.refresh(obj)
    return obj


@pytest_asyncio.fixture
async def test_branch(db_session: AsyncSession) -> Branch:
    """Create the main test branch."""
    return await _save(db_session, Branch(id=uuid4(), name="Downtown", is_active=True))


@pytest_asyncio.fixture
async def other_branch(db_session: AsyncSession) -> Branch:
    """Create a second branch."""
    return await _save(db_session, Branch(id=uuid4(), name="Marina", is_active=True))


@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession) -> User:
    """Create an admin (sees every branch)."""
    return await _save(db_session, User(
        id=uuid4(),
        username="admin",
        full_name="Admin User",
        role=UserRole.ADMIN,
        branch_id=None,
        is_active=True,
    ))


@pytest_asyncio.fixture
async def accountant_user(db_session: AsyncSession, test_branch: Branch) -> User:
    """Create an accountant of the main branch."""
    return await _save(db_session, User(
        id=uuid4(),
        username="accountant.downtown",
        full_name="Downtown Accountant",
        role=UserRole.ACCOUNTANT,
        branch_id=test_branch.id,
        is_active=True,
    ))


@pytest_asyncio.fixture
async def other_accountant(db_session: AsyncSession, other_branch: Branch) -> User:
    """Create an accountant of the second branch."""
    return await _save(db_session, User(
        id=uuid4(),
        username="accountant.marina",
        full_name="Marina Accountant",
        role=UserRole.ACCOUNTANT,
        branch_id=other_branch.id,
        is_active=True,
    ))


@pytest_asyncio.fixture
async def test_employee(db_session: AsyncSession, test_branch: Branch, admin_user: User) -> Employee:
    """Create an employee with base 500.00 and allowance 50.00."""
    return await _save(db_session, Employee(
        id=uuid4(),
        branch_id=test_branch.id,
        name="Sami Waiter",
        position="Waiter",
        base_salary=Decimal("500.00"),
        allowance=Decimal("50.00"),
        status=EmploymentStatus.ACTIVE,
        hire_date=date(2023, 6, 1),
        created_by_id=admin_user.id,
    ))


@pytest_asyncio.fixture
async def second_employee(db_session: AsyncSession, test_branch: Branch) -> Employee:
    """Create another employee in the main branch."""
    return await _save(db_session, Employee(
        id=uuid4(),
        branch_id=test_branch.id,
        name="Lina Cook",
        position="Line Cook",
        base_salary=Decimal("650.00"),
        allowance=Decimal("0.00"),
        status=EmploymentStatus.ACTIVE,
        hire_date=date(2023, 1, 10),
    ))


@pytest_asyncio.fixture
async def other_branch_employee(db_session: AsyncSession, other_branch: Branch) -> Employee:
    """Create an employee in the second branch."""
    return await _save(db_session, Employee(
        id=uuid4(),
        branch_id=other_branch.id,
        name="Omar Cashier",
        position="Cashier",
        base_salary=Decimal("550.00"),
        allowance=Decimal("0.00"),
        status=EmploymentStatus.ACTIVE,
        hire_date=date(2022, 9, 1),
    ))


@pytest_asyncio.fixture
async def inactive_employee(db_session: AsyncSession, test_branch: Branch) -> Employee:
    """Create an employee who has left."""
    return await _save(db_session, Employee(
        id=uuid4(),
        branch_id=test_branch.id,
        name="Former Employee",
        position="Waiter",
        base_salary=Decimal("500.00"),
        allowance=Decimal("0.00"),
        status=EmploymentStatus.INACTIVE,
        hire_date=date(2021, 3, 1),
    ))


# ===========================================
# AUTH FIXTURES
# ===========================================

def _headers_for(user: User) -> dict:
    token = create_access_token({"sub": str(user.id)})
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def admin_headers(admin_user: User) -> dict:
    """Authorization headers for the admin."""
    return _headers_for(admin_user)


@pytest_asyncio.fixture
async def accountant_headers(accountant_user: User) -> dict:
    """Authorization headers for the main branch accountant."""
    return _headers_for(accountant_user)


@pytest_asyncio.fixture
async def other_accountant_headers(other_accountant: User) -> dict:
    """Authorization headers for the second branch accountant."""
    return _headers_for(other_accountant)

"""
S-Network Backend — Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Every test gets its own in-memory SQLite database with the full schema,
       so service tests and API tests run against real SQL (foreign keys,
       CHECK constraints and cascades included) without touching disk.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── db_engine:     in-memory aiosqlite engine, schema created
    │   ├── db_session:    AsyncSession for calling services directly
    │   └── test_client:   HTTPX AsyncClient, app sessions bound to db_engine
    └── make_user:     async factory inserting a User through db_session
"""

import itertools
import os
from datetime import date

# Override settings for testing BEFORE any snetwork imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["LOG_LEVEL"] = "WARNING"  # Reduce noise during tests
os.environ["RATE_LIMIT_REQUESTS"] = "100000"
os.environ["PASSWORD_HASH_ITERATIONS"] = "1000"

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import snetwork.models  # noqa: F401  (registers every table)
from snetwork.database import Base, enable_sqlite_foreign_keys, get_db_session
from snetwork.models.user import User
from snetwork.security import hash_password

TEST_PASSWORD = "secret-password"

_user_numbers = itertools.count(1)


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine():
    """
    A private in-memory database for one test.

    StaticPool keeps a single connection alive, otherwise every checkout
    would open a fresh (empty) in-memory database.
    """
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine):
    """
    Session for service-level tests.

    Services only flush, so everything a test does stays in one open
    transaction that is rolled back afterwards.
    """
    factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def make_user(db_session):
    """
    Async factory for users.

    Usage:
        alice = await make_user("Alice", is_public=False)
    """

    async def _make_user(first_name: str = "Test", last_name: str = "User", **fields) -> User:
        n = next(_user_numbers)
        user = User(
            email=fields.pop("email", f"user{n}@example.com"),
            password_hash=hash_password(TEST_PASSWORD),
            first_name=first_name,
            last_name=last_name,
            date_of_birth=fields.pop("date_of_birth", date(1990, 1, 1)),
            **fields,
        )
        db_session.add(user)
        await db_session.flush()
        return user

    return _make_user


# ══════════════════════════════════════════════════════════════════════════
# API Client
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client(db_engine):
    """
    HTTPX AsyncClient talking to the FastAPI app in-process.

    get_db_session is overridden so each request commits to the test
    database. API tests create their data through the API itself.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from snetwork.main import app

    factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db_session():
        async with factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_get_db_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


async def register(client: AsyncClient, first_name: str, **fields) -> dict:
    """Register an account through the API and return the JSON body."""
    payload = {
        "email": f"{first_name.lower()}@example.com",
        "password": TEST_PASSWORD,
        "first_name": first_name,
        "last_name": "Tester",
        "date_of_birth": "1995-05-17",
    }
    payload.update(fields)
    response = await client.post("/api/register", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def as_user(user_id: int) -> dict:
    """Headers identifying the caller."""
    return {"X-User-ID": str(user_id)}

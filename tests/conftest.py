"""
Test fixtures for the Banking Portal API test suite.

This module provides shared fixtures used across all test files:

  - db_engine / db_session: Fresh in-memory SQLite database for each test
  - client: Async HTTP test client (unauthenticated)
  - customer / second_customer: Registered and logged-in CUSTOMER users
  - banker: A BANKER user provisioned in the DB and logged in

Key design decisions:
  - In-memory SQLite (sqlite+aiosqlite://) is used for speed and isolation.
    Each test gets a completely fresh database — no state leaks between tests.
  - We override FastAPI's get_db dependency to inject our test sessions,
    so the application code works exactly as it does in production.
  - Customer fixtures go through the real register and login endpoints.
    Bankers can't self-register, so the banker fixture inserts the user
    directly, the way an operator would provision one.
  - Fixtures authenticate with the opaque bearer token and clear the
    cookie jar after logging in, so each request carries exactly the
    credentials its test chooses.
"""

import os

# Settings are read at import time; the app refuses to start without a secret
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("PASSWORD_HASH_ROUNDS", "1")
os.environ.setdefault("ENVIRONMENT", "development")

import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from banking_portal.database import Base, get_db  # noqa: E402
from banking_portal.exceptions import BankAPIError  # noqa: E402
from banking_portal.main import app  # noqa: E402
from banking_portal.models.user import User, UserRole  # noqa: E402
from banking_portal.security import hash_password  # noqa: E402


# In-memory SQLite for fast, isolated tests
TEST_DATABASE_URL = "sqlite+aiosqlite://"

CUSTOMER_PASSWORD = "SecurePass123"
BANKER_EMAIL = "banker@bank.com"
BANKER_PASSWORD = "banker123"


@pytest_asyncio.fixture
async def db_engine():
    """Create a fresh async engine with all tables for each test."""
    # Every session shares the single in-memory connection, so a rollback
    # on checkin would discard writes another session hasn't committed yet
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        pool_reset_on_return=None,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(db_engine):
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture
async def db_session(session_factory):
    """Provide an async session bound to the test engine."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory):
    """
    Async HTTP test client with the test database injected.

    The override mirrors get_db, including committing before a domain
    error propagates (so an expired session deleted during auth stays
    deleted).
    """

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except BankAPIError:
                await session.commit()
                raise
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

async def register_customer(
    client: AsyncClient,
    email: str,
    password: str = CUSTOMER_PASSWORD,
    first_name: str = "Test",
    last_name: str = "User",
    **extra,
):
    return await client.post(
        "/api/auth/register",
        json={
            "email": email,
            "password": password,
            "firstName": first_name,
            "lastName": last_name,
            **extra,
        },
    )


async def login(client: AsyncClient, email: str, password: str = CUSTOMER_PASSWORD) -> dict:
    """Log in and return the JSON body. Leaves the cookie jar empty."""
    response = await client.post(
        "/api/auth/login",
        json={"email": email, "password": password},
    )
    assert response.status_code == 200, f"Login failed: {response.text}"
    client.cookies.clear()
    return response.json()


def bearer(access_token: str) -> dict:
    return {"Authorization": f"Bearer {access_token}"}


async def _logged_in_customer(client: AsyncClient, email: str, first_name: str) -> dict:
    response = await register_customer(client, email, first_name=first_name)
    assert response.status_code == 201, f"Register failed: {response.text}"
    body = await login(client, email)
    return {
        "email": email,
        "user_id": body["user"]["id"],
        "account_id": body["accounts"][0]["id"],
        "access_token": body["tokens"]["accessToken"],
        "jwt": body["tokens"]["jwt"],
        "headers": bearer(body["tokens"]["accessToken"]),
    }


# ---------------------------------------------------------------------------
# User fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def customer(client):
    """
    A registered, logged-in customer with one empty SAVINGS account.

    Returns a dict with email, user_id, account_id, access_token, jwt and
    ready-made bearer headers.
    """
    return await _logged_in_customer(client, "alice@example.com", "Alice")


@pytest_asyncio.fixture
async def second_customer(client):
    """A second customer for cross-user tests."""
    return await _logged_in_customer(client, "bob@example.com", "Bob")


@pytest_asyncio.fixture
async def banker(client, session_factory):
    """
    A BANKER provisioned directly in the database, then logged in through
    the banker login endpoint.
    """
    async with session_factory() as session:
        session.add(User(
            email=BANKER_EMAIL,
            username="banker",
            hashed_password=hash_password(BANKER_PASSWORD),
            first_name="John",
            last_name="Banker",
            role=UserRole.BANKER,
        ))
        await session.commit()

    response = await client.post(
        "/api/auth/banker-login",
        json={"email": BANKER_EMAIL, "password": BANKER_PASSWORD},
    )
    assert response.status_code == 200, f"Banker login failed: {response.text}"
    client.cookies.clear()
    body = response.json()
    return {
        "user_id": body["user"]["id"],
        "access_token": body["tokens"]["accessToken"],
        "jwt": body["tokens"]["jwt"],
        "headers": bearer(body["tokens"]["accessToken"]),
    }

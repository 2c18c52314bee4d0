"""
Database engine, session management, and base model class.

This module sets up SQLAlchemy 2.0 with async support. Key components:

  - engine: The async database engine (the process-wide connection pool)
  - AsyncSessionLocal: Factory for creating async database sessions
  - Base: Declarative base class that all ORM models inherit from
  - get_db(): FastAPI dependency that provides a session per request
  - check_connection(): Round-trips a trivial query for the /api/test-db probe

Architecture note:
  The engine is created once at import time and shared by every request.
  Handlers never touch it directly — they receive a request-scoped session
  through get_db(). When migrating to PostgreSQL, only the DATABASE_URL
  needs to change (to use the asyncpg driver).

Session lifecycle:
  Each API request gets its own session via get_db(). The session commits
  on success and rolls back on unexpected exceptions, so a ledger operation
  is either fully applied or not applied at all.
"""

import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

from banking_portal.config import settings
from banking_portal.exceptions import BankAPIError

logger = logging.getLogger(__name__)


# Create the async engine.
# echo=True in debug mode logs all SQL statements — invaluable for development.
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
)

# Session factory: creates new AsyncSession instances.
# expire_on_commit=False prevents lazy-load errors after commit —
# without this, accessing attributes on a committed object would trigger
# a synchronous DB call, which fails in async context.
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    All models inherit from this class, which provides:
      - Metadata tracking for create_all() and migrations
      - Common declarative mapping features
    """
    pass


async def get_db():
    """
    FastAPI dependency that provides a database session.

    Usage in a route:
        @router.get("/items")
        async def list_items(db: AsyncSession = Depends(get_db)):
            ...

    The session is committed on success and rolled back on any unexpected
    exception, then closed when the request completes.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except BankAPIError:
            # Domain errors are raised after any intended side effects (for
            # example deleting an expired session during authentication), so
            # the work done so far is committed. Ledger operations raise
            # before mutating anything.
            await session.commit()
            raise
        except Exception:
            await session.rollback()
            raise


async def check_connection(session: AsyncSession) -> bool:
    """Return True if the database answers a trivial query."""
    try:
        await session.execute(text("SELECT 1"))
    except Exception:
        logger.exception("Database connection check failed")
        return False
    return True

"""
Tests for the session store and the background sweeper.

Sessions back the opaque access tokens. These tests drive
services/session_service.py directly against the test database.
"""

import asyncio
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select

from banking_portal.models.session import UserSession
from banking_portal.models.user import User, UserRole
from banking_portal.security import hash_password
from banking_portal.services import session_service


@pytest.fixture
def now():
    return datetime.now(timezone.utc)


async def _user(db_session) -> User:
    user = User(
        email="sessions@example.com",
        hashed_password=hash_password("SecurePass123"),
        first_name="Session",
        last_name="Owner",
        role=UserRole.CUSTOMER,
    )
    db_session.add(user)
    await db_session.flush()
    return user


async def _count(db_session) -> int:
    return await db_session.scalar(select(func.count(UserSession.id)))


class TestSessionStore:

    async def test_create_and_find(self, db_session):
        user = await _user(db_session)
        session = await session_service.create_session(db_session, user.id)
        await db_session.commit()

        assert len(session.token) == 36
        found = await session_service.find_by_token(db_session, session.token)
        assert found is not None
        assert found.user_id == user.id
        assert found.user.email == "sessions@example.com"
        assert not found.is_expired()

    async def test_default_expiry_is_24_hours(self, db_session, now):
        user = await _user(db_session)
        session = await session_service.create_session(db_session, user.id)
        assert timedelta(hours=23, minutes=59) < session.expires_at - now <= timedelta(hours=24, seconds=5)

    async def test_unknown_token_not_found(self, db_session):
        assert await session_service.find_by_token(db_session, "x" * 36) is None

    async def test_deleted_session_not_found(self, db_session):
        user = await _user(db_session)
        session = await session_service.create_session(db_session, user.id)
        await db_session.commit()

        await session_service.delete_session(db_session, session.token)
        await db_session.commit()
        db_session.expunge_all()

        assert await session_service.find_by_token(db_session, session.token) is None

    async def test_double_delete_is_harmless(self, db_session):
        user = await _user(db_session)
        session = await session_service.create_session(db_session, user.id)
        await session_service.delete_session(db_session, session.token)
        await session_service.delete_session(db_session, session.token)
        await session_service.delete_session(db_session, "never-issued")
        await db_session.commit()
        assert await _count(db_session) == 0

    async def test_is_expired_handles_naive_timestamps(self, now):
        # SQLite hands back naive datetimes; they are UTC
        naive_past = (now - timedelta(minutes=1)).replace(tzinfo=None)
        assert UserSession(expires_at=naive_past).is_expired(now)
        assert not UserSession(expires_at=now + timedelta(minutes=1)).is_expired(now)

    async def test_cleanup_removes_only_expired(self, db_session, now):
        user = await _user(db_session)
        await session_service.create_session(db_session, user.id, expires_at=now - timedelta(hours=1))
        await session_service.create_session(db_session, user.id, expires_at=now - timedelta(days=2))
        live = await session_service.create_session(db_session, user.id)
        await db_session.commit()

        removed = await session_service.cleanup_expired_sessions(db_session, now)
        await db_session.commit()
        db_session.expunge_all()

        assert removed == 2
        assert await _count(db_session) == 1
        assert await session_service.find_by_token(db_session, live.token) is not None

    async def test_delete_all_user_sessions(self, db_session):
        user = await _user(db_session)
        for _ in range(3):
            await session_service.create_session(db_session, user.id)
        assert await session_service.delete_all_user_sessions(db_session, user.id) == 3
        assert await _count(db_session) == 0


class TestSessionSweeper:

    async def test_sweeper_removes_expired_sessions(self, db_session, session_factory, now):
        user = await _user(db_session)
        await session_service.create_session(db_session, user.id, expires_at=now - timedelta(hours=1))
        await session_service.create_session(db_session, user.id)
        await db_session.commit()

        swept = asyncio.Event()

        @asynccontextmanager
        async def tracking_factory():
            async with session_factory() as db:
                yield db
            # Committed and closed; the sweeper goes straight back to sleep
            swept.set()

        task = asyncio.create_task(session_service.run_session_sweeper(tracking_factory, 0.01))
        try:
            await asyncio.wait_for(swept.wait(), timeout=5)
        finally:
            # Only cancelled while sleeping, never mid-query on the shared connection
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        assert await _count(db_session) == 1

    async def test_sweeper_survives_a_failed_sweep(self, monkeypatch, session_factory):
        calls = 0

        async def flaky_cleanup(db, now=None):
            nonlocal calls
            calls += 1
            if calls == 1:
                raise RuntimeError("database unavailable")
            return 0

        monkeypatch.setattr(session_service, "cleanup_expired_sessions", flaky_cleanup)

        task = asyncio.create_task(session_service.run_session_sweeper(session_factory, 0.01))
        try:
            for _ in range(100):
                await asyncio.sleep(0.01)
                if calls >= 2:
                    break
        finally:
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        # The first sweep blew up; the loop kept going and swept again
        assert calls >= 2

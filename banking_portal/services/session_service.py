"""
Session service — the opaque access token store.

A session row maps a random bearer token to a user and an expiry. This
module owns every read and write of the sessions table:

  - create_session: issue a new token at login (24 h lifetime by default)
  - find_by_token: point lookup used by the authentication gate
  - delete_session: logout; deleting an unknown token is not an error
  - delete_all_user_sessions: logout from every device
  - cleanup_expired_sessions: bulk delete of expired rows
  - run_session_sweeper: background loop that calls the cleanup periodically

Expired rows are harmless (the gate rejects them) but would otherwise
accumulate forever, so they are pruned three ways: when presented, on
logout, and by the sweeper started in the application lifespan.
"""

import asyncio
import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import joinedload

from banking_portal.models.session import UserSession
from banking_portal.security import access_token_expiration, generate_access_token

logger = logging.getLogger(__name__)

_MAX_TOKEN_ATTEMPTS = 5


def token_preview(token: str) -> str:
    """Enough of a token to correlate log lines, never the whole secret."""
    return f"{token[:6]}..."


async def create_session(
    db: AsyncSession,
    user_id: uuid.UUID,
    expires_at: datetime | None = None,
) -> UserSession:
    """
    Create a session with a freshly generated access token.

    The token column is UNIQUE. A collision between two 36-character random
    tokens is practically impossible, but we still check and regenerate
    rather than let the insert fail.

    Args:
        db: Database session.
        user_id: Owner of the new session.
        expires_at: Optional explicit expiry. Defaults to
                    ACCESS_TOKEN_EXPIRE_HOURS from now.

    Returns:
        The persisted UserSession.
    """
    if expires_at is None:
        expires_at = access_token_expiration()

    for _ in range(_MAX_TOKEN_ATTEMPTS):
        token = generate_access_token()
        existing = await db.execute(
            select(UserSession.id).where(UserSession.token == token)
        )
        if existing.scalar_one_or_none() is None:
            break
        logger.warning("Access token collision, regenerating")
    else:
        raise RuntimeError("Failed to generate a unique access token")

    session = UserSession(user_id=user_id, token=token, expires_at=expires_at)
    db.add(session)
    await db.flush()
    return session


async def find_by_token(db: AsyncSession, token: str) -> UserSession | None:
    """Look up a session by token, with its user eagerly loaded."""
    result = await db.execute(
        select(UserSession)
        .options(joinedload(UserSession.user))
        .where(UserSession.token == token)
    )
    return result.scalar_one_or_none()


async def delete_session(db: AsyncSession, token: str) -> None:
    """
    Delete the session for `token`.

    Idempotent: deleting a token that doesn't exist (already logged out,
    swept, or never issued) is silently a no-op.
    """
    result = await db.execute(delete(UserSession).where(UserSession.token == token))
    if result.rowcount:
        logger.info("Deleted session %s", token_preview(token))


async def delete_all_user_sessions(db: AsyncSession, user_id: uuid.UUID) -> int:
    """Delete every session belonging to a user. Returns the number removed."""
    result = await db.execute(delete(UserSession).where(UserSession.user_id == user_id))
    return result.rowcount or 0


async def cleanup_expired_sessions(db: AsyncSession, now: datetime | None = None) -> int:
    """
    Delete all sessions whose expiry has passed.

    A single DELETE statement; running it concurrently from several requests
    is harmless because deleting an already-deleted row deletes nothing.

    Returns:
        The number of sessions removed.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    result = await db.execute(
        delete(UserSession)
        .where(UserSession.expires_at <= now)
        .execution_options(synchronize_session=False)
    )
    removed = result.rowcount or 0
    if removed:
        logger.info("Removed %d expired session(s)", removed)
    return removed


async def run_session_sweeper(
    session_factory: async_sessionmaker[AsyncSession],
    interval_seconds: float,
) -> None:
    """
    Periodically delete expired sessions until cancelled.

    Each sweep uses its own database session and commits independently.
    A failed sweep is logged and the loop keeps going; the next sweep will
    pick up whatever this one missed.
    """
    logger.info("Session sweeper started (every %ss)", interval_seconds)
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            async with session_factory() as db:
                await cleanup_expired_sessions(db)
                await db.commit()
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Expired session sweep failed")

"""
UserSession model — one server-tracked login (opaque access token).

Each row maps a random 36-character token to the user who logged in and
the moment the token stops being accepted. A session is valid while the
current time is before expires_at AND its user is still active.

Rows are created at login and deleted at logout. Expired rows are deleted
when someone presents them, and in bulk by the background sweeper.

A user may hold any number of concurrent sessions (one per device/browser).
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from banking_portal.database import Base


class UserSession(Base):
    __tablename__ = "sessions"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    # The opaque bearer token itself — UNIQUE, and the only lookup key
    token: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        nullable=False,
        index=True,
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )

    # Indexed so the expiry sweep doesn't scan the whole table
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    # --- Relationships ---
    user: Mapped["User"] = relationship(
        back_populates="sessions",
    )

    def is_expired(self, now: datetime | None = None) -> bool:
        if now is None:
            now = datetime.now(timezone.utc)
        expires_at = self.expires_at
        # SQLite hands timestamps back without tzinfo; they are stored as UTC
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return now >= expires_at

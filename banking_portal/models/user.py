"""
User model — the authentication identity.

Each User represents a login credential (email + hashed password) with a
fixed role. The role is set at creation time and never changes afterwards.

Roles:
  - CUSTOMER: Bank customer — owns accounts, deposits and withdraws
  - BANKER: Bank staff — read access to every account and the analytics views
  - ADMIN: Administrator — currently the same capabilities as BANKER

Self-service registration always creates CUSTOMER users. Staff users are
provisioned by an operator (see demo/seed.py).

The password is stored as an Argon2id hash — never in plaintext.
"""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Boolean, DateTime, Enum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from banking_portal.database import Base


class UserRole(str, enum.Enum):
    """
    Defines the role a user holds within the banking system.

    Inherits from str so the enum value serializes naturally to JSON
    and can be stored as a simple string in the database.
    """
    CUSTOMER = "CUSTOMER"
    BANKER = "BANKER"
    ADMIN = "ADMIN"

    @property
    def is_staff(self) -> bool:
        """BANKER and ADMIN share one capability set."""
        return self in (UserRole.BANKER, UserRole.ADMIN)


class User(Base):
    __tablename__ = "users"

    # Primary key: UUID provides globally unique IDs without sequential guessing
    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    # Email is the login identifier — must be unique and indexed for fast lookups
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )

    # Optional display handle, unique when present
    username: Mapped[str | None] = mapped_column(
        String(20),
        unique=True,
        nullable=True,
    )

    # Argon2id hash of the password (never store plaintext!)
    hashed_password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    first_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    last_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole),
        default=UserRole.CUSTOMER,
        nullable=False,
    )

    # Soft-disable: deactivated users can't log in and their sessions stop
    # working, but their data is preserved
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    # Audit timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    # --- Relationships ---
    accounts: Mapped[list["Account"]] = relationship(
        back_populates="user",
        order_by="Account.created_at",
    )
    sessions: Mapped[list["UserSession"]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

"""
Account model — a balance-bearing account owned by a customer.

Each account has:
  - A unique account number (randomly generated 10-digit string)
  - A type: SAVINGS, CHECKING or BUSINESS
  - A balance in integer cents, changed only by deposits and withdrawals

Balance management:
  The `balance_cents` column is updated in the same database transaction
  that inserts the matching Transaction row, so it always equals the
  running effect of the account's transaction history. It is maintained,
  never recomputed.

  A CHECK constraint at the database level enforces that the balance can
  never go negative, backing up the application-level insufficient-funds
  check.

Why integer cents?
  Floating-point numbers introduce rounding errors in financial
  calculations. Integer cents keep every addition and subtraction exact;
  the API layer renders them as two-decimal strings (see money.py).
"""

import enum
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import String, Boolean, BigInteger, DateTime, Enum, ForeignKey, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from banking_portal.database import Base
from banking_portal.money import cents_to_decimal


class AccountType(str, enum.Enum):
    SAVINGS = "SAVINGS"
    CHECKING = "CHECKING"
    BUSINESS = "BUSINESS"


class Account(Base):
    __tablename__ = "accounts"

    # Database-level constraint: balance can never be negative
    __table_args__ = (
        CheckConstraint(
            "balance_cents >= 0",
            name="ck_accounts_non_negative_balance",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    # Owner of this account
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )

    # Unique 10-digit account number (generated at creation time)
    account_number: Mapped[str] = mapped_column(
        String(20),
        unique=True,
        nullable=False,
    )

    account_type: Mapped[AccountType] = mapped_column(
        Enum(AccountType),
        nullable=False,
        default=AccountType.SAVINGS,
    )

    # Balance in cents. Updated atomically with each transaction.
    balance_cents: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        default=0,
    )

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
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    # --- Relationships ---
    user: Mapped["User"] = relationship(
        back_populates="accounts",
    )

    @property
    def balance(self) -> Decimal:
        return cents_to_decimal(self.balance_cents)

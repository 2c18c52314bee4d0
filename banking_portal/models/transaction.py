"""
Transaction model — an immutable ledger entry.

Every deposit or withdrawal creates exactly one Transaction record in the
same database transaction that changes the account balance.

Key fields:
  - type: DEPOSIT (money in) or WITHDRAWAL (money out)
  - amount_cents: Always positive (the direction is implied by the type)
  - balance_after_cents: Snapshot of the account balance immediately after
    this entry was applied. Reading an account's transactions in order
    therefore gives a verifiable running total.
  - status: Always COMPLETED — operations either apply fully or not at all,
    so there is nothing pending to record.

Rows are append-only: they are never updated or deleted.
"""

import enum
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import String, BigInteger, DateTime, Enum, ForeignKey, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from banking_portal.database import Base
from banking_portal.money import cents_to_decimal


class TransactionType(str, enum.Enum):
    DEPOSIT = "DEPOSIT"
    WITHDRAWAL = "WITHDRAWAL"


class TransactionStatus(str, enum.Enum):
    COMPLETED = "COMPLETED"


class Transaction(Base):
    __tablename__ = "transactions"

    __table_args__ = (
        # Amount must always be positive — direction is indicated by type
        CheckConstraint("amount_cents > 0", name="ck_transactions_positive_amount"),
        CheckConstraint("balance_after_cents >= 0", name="ck_transactions_non_negative_balance_after"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    account_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("accounts.id"),
        nullable=False,
        index=True,
    )

    type: Mapped[TransactionType] = mapped_column(
        Enum(TransactionType),
        nullable=False,
    )

    # Amount in cents — always positive
    amount_cents: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
    )

    balance_after_cents: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
    )

    description: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )

    status: Mapped[TransactionStatus] = mapped_column(
        Enum(TransactionStatus),
        nullable=False,
        default=TransactionStatus.COMPLETED,
    )

    # Indexed for newest-first listings and the monthly analytics window
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True,
    )

    # --- Relationships ---
    account: Mapped["Account"] = relationship()

    @property
    def amount(self) -> Decimal:
        return cents_to_decimal(self.amount_cents)

    @property
    def balance_after(self) -> Decimal:
        return cents_to_decimal(self.balance_after_cents)

"""
Transaction service — the ledger operations.

THIS IS THE MOST CRITICAL FILE IN THE PROJECT. It handles:
  - Deposits and withdrawals against a customer's own account
  - Balance enforcement (no negative balances)
  - The customer's transaction history

Atomicity:
  Every balance change and its Transaction record are written inside the
  SAME database transaction (the request session, committed by get_db).
  If either fails, both are rolled back, so balance_after on each record
  always equals the account balance right after that entry.

Lost updates:
  The balance is never read into Python, modified, and written back.
  Instead a single statement does the arithmetic in the database:

      UPDATE accounts SET balance_cents = balance_cents + :amount
      WHERE id = :id RETURNING balance_cents

  Two concurrent deposits therefore serialize on the row and both land.
  Withdrawals add `AND balance_cents >= :amount`; when no row comes back
  the account has insufficient funds and nothing has been changed.
  RETURNING hands back the exact post-update balance for balance_after.

SQLite note:
  SQLite doesn't support SELECT ... FOR UPDATE (row-level locking).
  The with_for_update() call on the ownership check is a no-op there and
  takes the row lock early on PostgreSQL.
"""

import logging
import uuid
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from banking_portal.exceptions import AccountNotFoundError, InsufficientFundsError, InvalidAmountError
from banking_portal.models.account import Account
from banking_portal.models.transaction import Transaction, TransactionStatus, TransactionType
from banking_portal.money import MAX_CENTS, cents_to_decimal, decimal_to_cents
from banking_portal.services import account_service

logger = logging.getLogger(__name__)


async def _lock_owned_account(
    db: AsyncSession,
    account_id: uuid.UUID,
    user_id: uuid.UUID,
) -> None:
    """Verify the caller owns the account and take the row lock."""
    result = await db.execute(
        select(Account.id)
        .where(Account.id == account_id)
        .where(Account.user_id == user_id)
        .with_for_update()  # No-op on SQLite, locks row on PostgreSQL
    )
    if result.scalar_one_or_none() is None:
        raise AccountNotFoundError(account_id)


def _to_cents(amount: Decimal, operation: str) -> int:
    if amount <= 0:
        raise InvalidAmountError(f"Invalid {operation} amount")
    return decimal_to_cents(amount)


async def _record(
    db: AsyncSession,
    account_id: uuid.UUID,
    txn_type: TransactionType,
    amount_cents: int,
    balance_after_cents: int,
    description: str,
) -> Transaction:
    txn = Transaction(
        account_id=account_id,
        type=txn_type,
        amount_cents=amount_cents,
        balance_after_cents=balance_after_cents,
        description=description,
        status=TransactionStatus.COMPLETED,
    )
    db.add(txn)
    await db.flush()
    return txn


async def deposit(
    db: AsyncSession,
    user_id: uuid.UUID,
    account_id: uuid.UUID,
    amount: Decimal,
    description: str | None = None,
) -> tuple[Transaction, Decimal]:
    """
    Add money to one of the caller's accounts.

    Args:
        db: Database session.
        user_id: The authenticated customer's id (ownership check).
        account_id: The account to credit.
        amount: Positive amount with at most two decimal places.
        description: Optional memo, defaults to "Deposit".

    Returns:
        Tuple of (Transaction, new balance).

    Raises:
        InvalidAmountError: Amount is not positive, has sub-cent precision,
            or would push the balance past MAX_CENTS.
        AccountNotFoundError: The account doesn't exist or isn't the caller's.
    """
    amount_cents = _to_cents(amount, "deposit")
    await _lock_owned_account(db, account_id, user_id)

    # The ceiling guard keeps the sum inside a 64-bit INTEGER
    result = await db.execute(
        update(Account)
        .where(Account.id == account_id)
        .where(Account.balance_cents <= MAX_CENTS - amount_cents)
        .values(balance_cents=Account.balance_cents + amount_cents)
        .returning(Account.balance_cents)
        .execution_options(synchronize_session=False)
    )
    new_balance_cents = result.scalar_one_or_none()
    if new_balance_cents is None:
        logger.warning("Deposit into account %s would exceed the maximum balance", account_id)
        raise InvalidAmountError("Deposit would exceed the maximum balance")

    txn = await _record(
        db, account_id, TransactionType.DEPOSIT, amount_cents,
        new_balance_cents, description or "Deposit",
    )
    logger.info("Deposit of %s into account %s", txn.amount, account_id)
    return txn, cents_to_decimal(new_balance_cents)


async def withdraw(
    db: AsyncSession,
    user_id: uuid.UUID,
    account_id: uuid.UUID,
    amount: Decimal,
    description: str | None = None,
) -> tuple[Transaction, Decimal]:
    """
    Take money out of one of the caller's accounts.

    The balance check and the debit are the same conditional UPDATE, so
    there is no window in which a concurrent withdrawal can overdraw.

    Returns:
        Tuple of (Transaction, new balance).

    Raises:
        InvalidAmountError: Amount is not positive, has sub-cent precision,
            or would push the balance past MAX_CENTS.
        AccountNotFoundError: The account doesn't exist or isn't the caller's.
        InsufficientFundsError: Amount exceeds the balance. Nothing changes.
    """
    amount_cents = _to_cents(amount, "withdrawal")
    await _lock_owned_account(db, account_id, user_id)

    result = await db.execute(
        update(Account)
        .where(Account.id == account_id)
        .where(Account.balance_cents >= amount_cents)
        .values(balance_cents=Account.balance_cents - amount_cents)
        .returning(Account.balance_cents)
        .execution_options(synchronize_session=False)
    )
    new_balance_cents = result.scalar_one_or_none()

    if new_balance_cents is None:
        available = await db.execute(
            select(Account.balance_cents).where(Account.id == account_id)
        )
        raise InsufficientFundsError(
            account_id=account_id,
            requested=cents_to_decimal(amount_cents),
            available=cents_to_decimal(available.scalar_one()),
        )

    txn = await _record(
        db, account_id, TransactionType.WITHDRAWAL, amount_cents,
        new_balance_cents, description or "Withdrawal",
    )
    logger.info("Withdrawal of %s from account %s", txn.amount, account_id)
    return txn, cents_to_decimal(new_balance_cents)


async def list_user_transactions(
    db: AsyncSession,
    user_id: uuid.UUID,
) -> tuple[list[Transaction], list[Account]]:
    """
    All transactions across the caller's accounts (newest first), plus the
    accounts themselves with their current balances.
    """
    result = await db.execute(
        select(Transaction)
        .join(Transaction.account)
        .options(joinedload(Transaction.account))
        .where(Account.user_id == user_id)
        .order_by(Transaction.created_at.desc())
    )
    transactions = list(result.scalars().all())
    accounts = await account_service.get_user_accounts(db, user_id)
    return transactions, accounts

"""
Account service — creating and reading customer accounts.

This module handles:
  - Account creation (with unique account number generation)
  - Listing a user's own accounts

Balances are never written here — see transaction_service.py.
"""

import uuid
import random
import string

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from banking_portal.models.account import Account, AccountType


def _generate_account_number() -> str:
    """
    Generate a random 10-digit account number that never starts with 0.

    In a real bank, this would follow a specific format (routing number,
    check digit, etc.). A random string is sufficient here and avoids
    sequential guessing.
    """
    return random.choice("123456789") + "".join(random.choices(string.digits, k=9))


async def create_account(
    db: AsyncSession,
    user_id: uuid.UUID,
    account_type: AccountType = AccountType.SAVINGS,
) -> Account:
    """
    Create a new account with a zero balance.

    Args:
        db: Database session.
        user_id: The owning user's id.
        account_type: SAVINGS (default), CHECKING or BUSINESS.

    Returns:
        The newly created Account instance.
    """
    # Generate a unique account number (retry if collision, extremely unlikely)
    for _ in range(10):
        account_number = _generate_account_number()
        existing = await db.execute(
            select(Account.id).where(Account.account_number == account_number)
        )
        if existing.scalar_one_or_none() is None:
            break
    else:
        raise RuntimeError("Failed to generate a unique account number")

    account = Account(
        user_id=user_id,
        account_type=account_type,
        account_number=account_number,
        balance_cents=0,
    )
    db.add(account)
    await db.flush()
    return account


async def get_user_accounts(db: AsyncSession, user_id: uuid.UUID) -> list[Account]:
    """List all accounts owned by a user, oldest first."""
    result = await db.execute(
        select(Account)
        .where(Account.user_id == user_id)
        .order_by(Account.created_at)
    )
    return list(result.scalars().all())


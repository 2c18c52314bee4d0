"""
Banker service — read-only views across every customer's accounts.

Functions here do NOT scope by owner. They back the /api/banker/*
endpoints, and the router layer enforces that only staff (BANKER/ADMIN)
can call them. Nothing in this module writes to the database.

Aggregates are computed in SQL where it's a simple GROUP BY and reshaped
in Python where the response needs nesting (monthly trends, top lists).
All sums are integer cents until the final conversion to Decimal.
"""

import uuid
from collections import defaultdict
from datetime import datetime, timedelta, timezone

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from banking_portal.exceptions import AccountNotFoundError
from banking_portal.models.account import Account
from banking_portal.models.transaction import Transaction, TransactionType
from banking_portal.money import cents_to_decimal

ANALYTICS_WINDOW = timedelta(days=183)  # roughly six months
RECENT_TRANSACTION_LIMIT = 10
TOP_CUSTOMER_LIMIT = 5


async def _transaction_counts(db: AsyncSession) -> dict[uuid.UUID, int]:
    result = await db.execute(
        select(Transaction.account_id, func.count(Transaction.id))
        .group_by(Transaction.account_id)
    )
    return {account_id: count for account_id, count in result.all()}


async def _latest_transactions(db: AsyncSession) -> dict[uuid.UUID, Transaction]:
    """Most recent transaction per account."""
    latest = (
        select(
            Transaction.account_id,
            func.max(Transaction.created_at).label("latest_at"),
        )
        .group_by(Transaction.account_id)
        .subquery()
    )
    result = await db.execute(
        select(Transaction).join(
            latest,
            (Transaction.account_id == latest.c.account_id)
            & (Transaction.created_at == latest.c.latest_at),
        )
    )
    return {txn.account_id: txn for txn in result.scalars().all()}


async def get_all_accounts(db: AsyncSession) -> list[dict]:
    """
    Every account (newest first) with its owner, transaction count and
    last transaction.
    """
    result = await db.execute(
        select(Account)
        .options(joinedload(Account.user))
        .order_by(Account.created_at.desc())
    )
    accounts = list(result.scalars().all())
    counts = await _transaction_counts(db)
    latest = await _latest_transactions(db)

    rows = []
    for account in accounts:
        last = latest.get(account.id)
        rows.append({
            "id": account.id,
            "account_number": account.account_number,
            "account_type": account.account_type,
            "balance": account.balance,
            "is_active": account.is_active,
            "created_at": account.created_at,
            "user": {
                "first_name": account.user.first_name,
                "last_name": account.user.last_name,
                "email": account.user.email,
                "role": account.user.role,
                "is_active": account.user.is_active,
                "joined_at": account.user.created_at,
            },
            "transaction_count": counts.get(account.id, 0),
            "last_transaction": {
                "type": last.type,
                "amount": last.amount,
                "created_at": last.created_at,
            } if last is not None else None,
        })
    return rows


async def get_statistics(db: AsyncSession, accounts: list[dict]) -> dict:
    """Bank-wide totals. `accounts` is the output of get_all_accounts()."""
    total_transactions = await db.scalar(select(func.count(Transaction.id)))
    total_balance_cents = await db.scalar(
        select(func.coalesce(func.sum(Account.balance_cents), 0))
    )
    return {
        "total_accounts": len(accounts),
        # An account counts as active while its owner is active
        "active_accounts": sum(1 for a in accounts if a["user"]["is_active"]),
        "total_balance": cents_to_decimal(total_balance_cents or 0),
        "total_transactions": total_transactions or 0,
    }


async def get_account_transactions(db: AsyncSession, account_id: uuid.UUID) -> list[Transaction]:
    """
    All transactions of any account, newest first.

    Raises:
        AccountNotFoundError: If the account doesn't exist.
    """
    account = await db.get(Account, account_id)
    if account is None:
        raise AccountNotFoundError(account_id, "Account not found")

    result = await db.execute(
        select(Transaction)
        .where(Transaction.account_id == account_id)
        .order_by(Transaction.created_at.desc())
    )
    return list(result.scalars().all())


async def get_recent_transactions(db: AsyncSession, limit: int = RECENT_TRANSACTION_LIMIT) -> list[dict]:
    result = await db.execute(
        select(Transaction)
        .options(joinedload(Transaction.account).joinedload(Account.user))
        .order_by(Transaction.created_at.desc())
        .limit(limit)
    )
    rows = []
    for txn in result.scalars().all():
        rows.append({
            "id": txn.id,
            "type": txn.type,
            "amount": txn.amount,
            "balance_after": txn.balance_after,
            "description": txn.description,
            "status": txn.status,
            "created_at": txn.created_at,
            "account": {
                "account_number": txn.account.account_number,
                "account_type": txn.account.account_type,
            },
            "customer": {
                "name": txn.account.user.full_name,
                "email": txn.account.user.email,
            },
        })
    return rows


async def get_analytics(db: AsyncSession, now: datetime | None = None) -> dict:
    """
    Transaction analytics over the last six months:
      - monthly_transactions: count and total per type
      - transaction_trends: count and total per (YYYY-MM, type)
    """
    if now is None:
        now = datetime.now(timezone.utc)
    since = now - ANALYTICS_WINDOW

    totals_result = await db.execute(
        select(
            Transaction.type,
            func.count(Transaction.id),
            func.coalesce(func.sum(Transaction.amount_cents), 0),
        )
        .where(Transaction.created_at >= since)
        .group_by(Transaction.type)
    )
    monthly = [
        {"type": txn_type, "count": count, "total_amount": cents_to_decimal(total)}
        for txn_type, count, total in totals_result.all()
    ]

    rows_result = await db.execute(
        select(Transaction.type, Transaction.amount_cents, Transaction.created_at)
        .where(Transaction.created_at >= since)
        .order_by(Transaction.created_at.desc())
    )
    # Bucketing by month in Python keeps the query portable across databases
    buckets: dict[tuple[str, TransactionType], list[int]] = defaultdict(lambda: [0, 0])
    for txn_type, amount_cents, created_at in rows_result.all():
        bucket = buckets[(created_at.strftime("%Y-%m"), txn_type)]
        bucket[0] += 1
        bucket[1] += amount_cents

    trends = [
        {
            "month": month,
            "type": txn_type,
            "count": count,
            "total_amount": cents_to_decimal(total),
        }
        for (month, txn_type), (count, total) in buckets.items()
    ]
    return {"monthly_transactions": monthly, "transaction_trends": trends}


async def get_customer_insights(
    db: AsyncSession,
    limit: int = TOP_CUSTOMER_LIMIT,
) -> dict:
    """Top depositors (by deposit total) and most active accounts (by count)."""
    deposit_totals = (
        select(
            Transaction.account_id,
            func.sum(Transaction.amount_cents).label("total_cents"),
            func.count(Transaction.id).label("deposit_count"),
        )
        .where(Transaction.type == TransactionType.DEPOSIT)
        .group_by(Transaction.account_id)
        .subquery()
    )
    depositors_result = await db.execute(
        select(Account, deposit_totals.c.total_cents, deposit_totals.c.deposit_count)
        .join(deposit_totals, deposit_totals.c.account_id == Account.id)
        .options(joinedload(Account.user))
        .order_by(deposit_totals.c.total_cents.desc())
        .limit(limit)
    )
    top_depositors = [
        {
            "account_id": account.id,
            "account_number": account.account_number,
            "customer_name": account.user.full_name,
            "customer_email": account.user.email,
            "total_deposits": cents_to_decimal(total_cents),
            "transaction_count": deposit_count,
            "current_balance": account.balance,
        }
        for account, total_cents, deposit_count in depositors_result.unique().all()
    ]

    activity = (
        select(
            Transaction.account_id,
            func.count(Transaction.id).label("txn_count"),
        )
        .group_by(Transaction.account_id)
        .subquery()
    )
    active_result = await db.execute(
        select(Account, func.coalesce(activity.c.txn_count, 0).label("txn_count"))
        .outerjoin(activity, activity.c.account_id == Account.id)
        .options(joinedload(Account.user))
        .order_by(func.coalesce(activity.c.txn_count, 0).desc(), Account.created_at)
        .limit(limit)
    )
    most_active = [
        {
            "account_id": account.id,
            "account_number": account.account_number,
            "customer_name": account.user.full_name,
            "customer_email": account.user.email,
            "transaction_count": txn_count,
            "current_balance": account.balance,
        }
        for account, txn_count in active_result.unique().all()
    ]

    return {"top_depositors": top_depositors, "most_active_customers": most_active}


async def get_dashboard(db: AsyncSession) -> dict:
    """Everything the banker dashboard renders, in one payload."""
    accounts = await get_all_accounts(db)
    return {
        "accounts": accounts,
        "recent_transactions": await get_recent_transactions(db),
        "statistics": await get_statistics(db, accounts),
        "analytics": await get_analytics(db),
        "customer_insights": await get_customer_insights(db),
    }

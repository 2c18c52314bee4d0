"""
Transactions router — deposits, withdrawals and the caller's history.

Endpoints:
  GET  /api/transactions           — History across the caller's accounts
  POST /api/transactions/deposit   — Credit one of the caller's accounts
  POST /api/transactions/withdraw  — Debit one of the caller's accounts

Deposits and withdrawals are CUSTOMER-only. The account must belong to
the caller; someone else's account is a 404, never a 403, so account ids
can't be probed.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from banking_portal.database import get_db
from banking_portal.dependencies import get_current_principal, require_customer
from banking_portal.schemas.account import AccountSummary
from banking_portal.schemas.transaction import (
    HistoryTransaction,
    LedgerRequest,
    LedgerResponse,
    TransactionHistoryResponse,
    TransactionResponse,
)
from banking_portal.security import Principal
from banking_portal.services import transaction_service

router = APIRouter(prefix="/api/transactions", tags=["Transactions"])


@router.get(
    "",
    response_model=TransactionHistoryResponse,
    summary="List the caller's transactions",
)
async def list_transactions(
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """
    All transactions across the caller's accounts, newest first, each
    tagged with its account number and type. Also returns the accounts
    with their current balances.
    """
    transactions, accounts = await transaction_service.list_user_transactions(
        db, principal.user_id,
    )
    return TransactionHistoryResponse(
        transactions=[HistoryTransaction.model_validate(t) for t in transactions],
        accounts=[AccountSummary.model_validate(a) for a in accounts],
    )


@router.post(
    "/deposit",
    response_model=LedgerResponse,
    summary="Deposit into an account",
)
async def deposit(
    request: LedgerRequest,
    principal: Principal = Depends(require_customer),
    db: AsyncSession = Depends(get_db),
):
    """
    Add money to one of your accounts.

    - **accountId**: An account you own
    - **amount**: Positive, at most two decimal places (e.g. `"100.50"`)
    - **description**: Optional memo, defaults to "Deposit"
    """
    txn, new_balance = await transaction_service.deposit(
        db=db,
        user_id=principal.user_id,
        account_id=request.account_id,
        amount=request.amount,
        description=request.description,
    )
    return LedgerResponse(
        message="Deposit successful",
        transaction=TransactionResponse.model_validate(txn),
        new_balance=new_balance,
    )


@router.post(
    "/withdraw",
    response_model=LedgerResponse,
    summary="Withdraw from an account",
)
async def withdraw(
    request: LedgerRequest,
    principal: Principal = Depends(require_customer),
    db: AsyncSession = Depends(get_db),
):
    """
    Take money out of one of your accounts.

    Rejected with 400 if the amount exceeds the balance; nothing is
    recorded in that case.
    """
    txn, new_balance = await transaction_service.withdraw(
        db=db,
        user_id=principal.user_id,
        account_id=request.account_id,
        amount=request.amount,
        description=request.description,
    )
    return LedgerResponse(
        message="Withdrawal successful",
        transaction=TransactionResponse.model_validate(txn),
        new_balance=new_balance,
    )

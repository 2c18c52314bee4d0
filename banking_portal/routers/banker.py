"""
Banker router — read-only views across all customers.

Every endpoint requires a BANKER or ADMIN principal. Customers get 403,
unauthenticated callers 401.

Endpoints:
  GET /api/banker/dashboard                          — Everything at once
  GET /api/banker/accounts                           — All accounts + statistics
  GET /api/banker/accounts/{account_id}/transactions — One account's history
"""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from banking_portal.database import get_db
from banking_portal.dependencies import require_staff
from banking_portal.schemas.banker import BankerAccountsResponse, DashboardResponse
from banking_portal.schemas.transaction import TransactionResponse
from banking_portal.security import Principal
from banking_portal.services import banker_service

router = APIRouter(prefix="/api/banker", tags=["Banker"])


@router.get(
    "/dashboard",
    response_model=DashboardResponse,
    summary="Bank-wide dashboard",
)
async def dashboard(
    principal: Principal = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    """
    Accounts, statistics, the 10 most recent transactions, six months of
    analytics and customer insights (top depositors, most active accounts).
    """
    return await banker_service.get_dashboard(db)


@router.get(
    "/accounts",
    response_model=BankerAccountsResponse,
    summary="List all accounts",
)
async def list_accounts(
    principal: Principal = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    """All accounts, newest first, with owner and activity summary."""
    accounts = await banker_service.get_all_accounts(db)
    statistics = await banker_service.get_statistics(db, accounts)
    return {"accounts": accounts, "statistics": statistics}


@router.get(
    "/accounts/{account_id}/transactions",
    response_model=list[TransactionResponse],
    summary="List an account's transactions",
)
async def account_transactions(
    account_id: uuid.UUID,
    principal: Principal = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    return await banker_service.get_account_transactions(db, account_id)

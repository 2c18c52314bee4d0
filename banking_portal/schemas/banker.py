"""
Pydantic schemas for the banker views (account list and dashboard).

These are read-only projections assembled by services/banker_service.py.
Money fields are Decimals and serialize as two-decimal strings.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from banking_portal.models.account import AccountType
from banking_portal.models.transaction import TransactionType
from banking_portal.models.user import UserRole
from banking_portal.schemas.base import ApiModel
from banking_portal.schemas.transaction import TransactionAccountRef, TransactionResponse


class AccountOwner(ApiModel):
    first_name: str
    last_name: str
    email: str
    role: UserRole
    is_active: bool
    joined_at: datetime


class LastTransaction(ApiModel):
    type: TransactionType
    amount: Decimal
    created_at: datetime


class BankerAccount(ApiModel):
    id: uuid.UUID
    account_number: str
    account_type: AccountType
    balance: Decimal
    is_active: bool
    created_at: datetime
    user: AccountOwner
    transaction_count: int
    last_transaction: LastTransaction | None


class BankStatistics(ApiModel):
    total_accounts: int
    active_accounts: int
    total_balance: Decimal
    total_transactions: int


class BankerAccountsResponse(ApiModel):
    """Response body for GET /api/banker/accounts."""
    accounts: list[BankerAccount]
    statistics: BankStatistics


class CustomerRef(ApiModel):
    name: str
    email: str


class RecentTransaction(TransactionResponse):
    account: TransactionAccountRef
    customer: CustomerRef


class TypeTotals(ApiModel):
    """Totals for one transaction type over the analytics window."""
    type: TransactionType
    count: int
    total_amount: Decimal


class MonthlyTrend(ApiModel):
    month: str  # YYYY-MM
    type: TransactionType
    count: int
    total_amount: Decimal


class Analytics(ApiModel):
    monthly_transactions: list[TypeTotals]
    transaction_trends: list[MonthlyTrend]


class Depositor(ApiModel):
    account_id: uuid.UUID
    account_number: str
    customer_name: str
    customer_email: str
    total_deposits: Decimal
    transaction_count: int
    current_balance: Decimal


class ActiveCustomer(ApiModel):
    account_id: uuid.UUID
    account_number: str
    customer_name: str
    customer_email: str
    transaction_count: int
    current_balance: Decimal


class CustomerInsights(ApiModel):
    top_depositors: list[Depositor]
    most_active_customers: list[ActiveCustomer]


class DashboardResponse(ApiModel):
    """Response body for GET /api/banker/dashboard."""
    accounts: list[BankerAccount]
    recent_transactions: list[RecentTransaction]
    statistics: BankStatistics
    analytics: Analytics
    customer_insights: CustomerInsights

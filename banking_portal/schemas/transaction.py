"""
Pydantic schemas for deposits, withdrawals and the customer history.

Amounts are accepted as JSON numbers or strings and parsed as Decimal
(never float). Positivity and the two-decimal limit are checked by the
ledger service so the error messages match the operation
("Invalid deposit amount", "Invalid withdrawal amount").
"""

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import Field

from banking_portal.models.account import AccountType
from banking_portal.models.transaction import TransactionStatus, TransactionType
from banking_portal.schemas.account import AccountSummary
from banking_portal.schemas.base import ApiModel


class LedgerRequest(ApiModel):
    """Request body for POST /api/transactions/deposit and /withdraw."""
    account_id: uuid.UUID
    amount: Decimal
    description: str | None = Field(None, max_length=255)


class TransactionResponse(ApiModel):
    """Public representation of a ledger entry."""
    id: uuid.UUID
    type: TransactionType
    amount: Decimal
    balance_after: Decimal
    description: str | None
    status: TransactionStatus
    created_at: datetime


class LedgerResponse(ApiModel):
    """Response body for a successful deposit or withdrawal."""
    success: bool = True
    message: str
    transaction: TransactionResponse
    new_balance: Decimal


class TransactionAccountRef(ApiModel):
    account_number: str
    account_type: AccountType


class HistoryTransaction(TransactionResponse):
    """A transaction in the customer's history, tagged with its account."""
    account: TransactionAccountRef


class TransactionHistoryResponse(ApiModel):
    """Response body for GET /api/transactions."""
    transactions: list[HistoryTransaction]
    accounts: list[AccountSummary]

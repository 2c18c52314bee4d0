"""
Pydantic schemas for accounts.

Balances are Decimals built from integer cents; they serialize to JSON as
strings with two fractional digits ("1300.00").
"""

import uuid
from decimal import Decimal

from banking_portal.models.account import AccountType
from banking_portal.schemas.base import ApiModel


class AccountSummary(ApiModel):
    """An account as shown to its owner."""
    id: uuid.UUID
    account_number: str
    account_type: AccountType
    balance: Decimal

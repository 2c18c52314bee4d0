"""
SQLAlchemy ORM models package.

All models are imported here so that:
  1. Base.metadata knows every table before create_all() runs
  2. Other modules can import from banking_portal.models directly
"""

from banking_portal.models.user import User, UserRole  # noqa: F401
from banking_portal.models.session import UserSession  # noqa: F401
from banking_portal.models.account import Account, AccountType  # noqa: F401
from banking_portal.models.transaction import (  # noqa: F401
    Transaction,
    TransactionStatus,
    TransactionType,
)

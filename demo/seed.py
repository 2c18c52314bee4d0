#!/usr/bin/env python3
"""
Demo seed script — populates the database with sample data for demos.

!! NOT FOR PRODUCTION !!
This script creates users with known, deliberately weak passwords and fake
transaction data. It is intended ONLY for local demos and frontend work.

Staff users can't be created through the API (registration always makes a
customer), and the demo passwords wouldn't pass the registration policy,
so everything is written directly to the database. Balances still go
through the ledger service so every balanceAfter is consistent.

Usage:
    python demo/seed.py            # Add whatever is missing
    python demo/seed.py --reset    # Drop all tables and re-seed

Login credentials after seeding:
    ┌──────────────────────────────┬─────────────┬──────────┐
    │ Email                        │ Password    │ Role     │
    ├──────────────────────────────┼─────────────┼──────────┤
    │ banker@bank.com              │ banker123   │ BANKER   │
    │ admin@bank.com               │ admin123    │ ADMIN    │
    │ customer@example.com         │ customer123 │ CUSTOMER │
    │ alice.smith@email.com        │ password123 │ CUSTOMER │
    │ bob.johnson@email.com        │ password123 │ CUSTOMER │
    │ carol.davis@email.com        │ password123 │ CUSTOMER │
    │ david.wilson@email.com       │ password123 │ CUSTOMER │
    │ emma.brown@email.com         │ password123 │ CUSTOMER │
    └──────────────────────────────┴─────────────┴──────────┘
"""

import argparse
import asyncio
import os
import sys
from decimal import Decimal

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from sqlalchemy import select  # noqa: E402

from banking_portal.database import AsyncSessionLocal, Base, engine  # noqa: E402
from banking_portal.models import Account, AccountType, TransactionType, User, UserRole  # noqa: E402
from banking_portal.security import hash_password  # noqa: E402
from banking_portal.services import transaction_service  # noqa: E402

# ---------------------------------------------------------------------------
# Demo users
# ---------------------------------------------------------------------------

STAFF = [
    {
        "email": "banker@bank.com",
        "username": "banker",
        "password": "banker123",
        "first_name": "John",
        "last_name": "Banker",
        "role": UserRole.BANKER,
    },
    {
        "email": "admin@bank.com",
        "username": "admin",
        "password": "admin123",
        "first_name": "Admin",
        "last_name": "User",
        "role": UserRole.ADMIN,
    },
]

D, W = TransactionType.DEPOSIT, TransactionType.WITHDRAWAL

CUSTOMERS = [
    {
        "email": "customer@example.com",
        "username": "customer",
        "password": "customer123",
        "first_name": "Jane",
        "last_name": "Customer",
        "account_number": "1234567890",
        "account_type": AccountType.SAVINGS,
        "transactions": [
            (D, "1000.00", "Initial deposit"),
            (D, "500.00", "Salary deposit"),
            (W, "200.00", "ATM withdrawal"),
            (W, "300.00", "Shopping"),
        ],
    },
    {
        "email": "alice.smith@email.com",
        "username": "alice_smith",
        "password": "password123",
        "first_name": "Alice",
        "last_name": "Smith",
        "account_number": "2345678901",
        "account_type": AccountType.CHECKING,
        "transactions": [
            (D, "2500.00", "Opening deposit"),
            (D, "1200.00", "Paycheck"),
            (W, "800.00", "Rent payment"),
            (W, "150.00", "Groceries"),
            (D, "300.00", "Freelance payment"),
        ],
    },
    {
        "email": "bob.johnson@email.com",
        "username": "bob_johnson",
        "password": "password123",
        "first_name": "Bob",
        "last_name": "Johnson",
        "account_number": "3456789012",
        "account_type": AccountType.SAVINGS,
        "transactions": [
            (D, "5000.00", "Initial savings"),
            (D, "2000.00", "Bonus payment"),
            (W, "1000.00", "Emergency fund"),
            (D, "800.00", "Investment return"),
        ],
    },
    {
        "email": "carol.davis@email.com",
        "username": "carol_davis",
        "password": "password123",
        "first_name": "Carol",
        "last_name": "Davis",
        "account_number": "4567890123",
        "account_type": AccountType.CHECKING,
        "transactions": [
            (D, "1800.00", "Opening deposit"),
            (W, "600.00", "Car payment"),
            (D, "1100.00", "Salary"),
            (W, "250.00", "Utilities"),
            (W, "400.00", "Insurance"),
            (D, "750.00", "Side business"),
        ],
    },
    {
        "email": "david.wilson@email.com",
        "username": "david_wilson",
        "password": "password123",
        "first_name": "David",
        "last_name": "Wilson",
        "account_number": "5678901234",
        "account_type": AccountType.SAVINGS,
        "transactions": [
            (D, "3200.00", "Transfer from checking"),
            (D, "1500.00", "Tax refund"),
            (W, "2000.00", "Home renovation"),
            (D, "900.00", "Quarterly dividend"),
        ],
    },
    {
        "email": "emma.brown@email.com",
        "username": "emma_brown",
        "password": "password123",
        "first_name": "Emma",
        "last_name": "Brown",
        "account_number": "6789012345",
        "account_type": AccountType.CHECKING,
        "transactions": [
            (D, "4200.00", "Opening balance"),
            (W, "1200.00", "Mortgage payment"),
            (D, "2800.00", "Salary deposit"),
            (W, "350.00", "Phone & Internet"),
            (W, "180.00", "Gas bill"),
            (D, "450.00", "Cashback rewards"),
            (W, "800.00", "Credit card payment"),
        ],
    },
]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def log(msg: str) -> None:
    print(f"  {msg}")


async def get_or_create_user(session, data: dict, role: UserRole) -> tuple[User, bool]:
    """Insert the user unless the email already exists. Returns (user, created)."""
    result = await session.execute(select(User).where(User.email == data["email"]))
    user = result.scalar_one_or_none()
    if user is not None:
        return user, False

    user = User(
        email=data["email"],
        username=data["username"],
        hashed_password=hash_password(data["password"]),
        first_name=data["first_name"],
        last_name=data["last_name"],
        role=role,
    )
    session.add(user)
    await session.flush()
    return user, True


async def seed_customer(session, data: dict) -> None:
    user, created = await get_or_create_user(session, data, UserRole.CUSTOMER)
    if not created:
        log(f"{data['email']} already exists, skipping")
        return

    account = Account(
        user_id=user.id,
        account_number=data["account_number"],
        account_type=data["account_type"],
        balance_cents=0,
    )
    session.add(account)
    await session.flush()

    for txn_type, amount, description in data["transactions"]:
        operation = (
            transaction_service.deposit if txn_type == TransactionType.DEPOSIT
            else transaction_service.withdraw
        )
        _, balance = await operation(
            session, user.id, account.id, Decimal(amount), description,
        )

    log(f"{data['email']} / {data['password']}")
    log(f"  {data['account_type'].value} account {account.account_number}: "
        f"{len(data['transactions'])} transactions, balance ${balance:,}")


# ---------------------------------------------------------------------------
# Seed logic
# ---------------------------------------------------------------------------

async def seed(reset: bool) -> None:
    print("\n========================================")
    print("  DEMO SEED — NOT FOR PRODUCTION")
    print("========================================\n")

    async with engine.begin() as conn:
        if reset:
            print("Dropping all tables...")
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as session:
        print("Creating staff users...")
        for data in STAFF:
            _, created = await get_or_create_user(session, data, data["role"])
            status = "" if created else " (already exists)"
            log(f"{data['role'].value}: {data['email']} / {data['password']}{status}")

        print("\nCreating customers...")
        for data in CUSTOMERS:
            await seed_customer(session, data)

        await session.commit()

    await engine.dispose()
    print("\nDone.\n")


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed the banking portal with demo data")
    parser.add_argument(
        "--reset", action="store_true",
        help="Drop all tables before seeding",
    )
    args = parser.parse_args()
    asyncio.run(seed(args.reset))


if __name__ == "__main__":
    main()

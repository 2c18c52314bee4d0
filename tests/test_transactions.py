"""
Tests for the ledger: deposits, withdrawals and transaction history.

Covers:
  - Deposit / withdrawal accounting (balanceAfter always equals balance)
  - Rejections: non-positive, sub-cent, over-withdrawal, foreign account
  - Exact two-decimal money on the wire
  - Concurrent deposits lose nothing
  - History ordering and account tagging
"""

import asyncio
import uuid
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from banking_portal.models.account import Account
from banking_portal.models.transaction import Transaction
from banking_portal.money import MAX_CENTS


async def deposit(client, who, amount, description=None, account_id=None):
    body = {"accountId": account_id or who["account_id"], "amount": amount}
    if description is not None:
        body["description"] = description
    return await client.post("/api/transactions/deposit", json=body, headers=who["headers"])


async def withdraw(client, who, amount, description=None, account_id=None):
    body = {"accountId": account_id or who["account_id"], "amount": amount}
    if description is not None:
        body["description"] = description
    return await client.post("/api/transactions/withdraw", json=body, headers=who["headers"])


async def balance_cents(db_session, account_id: str) -> int:
    return await db_session.scalar(
        select(Account.balance_cents).where(Account.id == uuid.UUID(account_id))
    )


async def transaction_count(db_session, account_id: str) -> int:
    return await db_session.scalar(
        select(func.count(Transaction.id)).where(Transaction.account_id == uuid.UUID(account_id))
    )


class TestDeposit:

    async def test_deposit_increases_balance(self, client, customer):
        response = await deposit(client, customer, "100.50", "Paycheck")
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["message"] == "Deposit successful"
        assert data["newBalance"] == "100.50"

        txn = data["transaction"]
        assert txn["type"] == "DEPOSIT"
        assert txn["amount"] == "100.50"
        assert txn["balanceAfter"] == "100.50"
        assert txn["description"] == "Paycheck"
        assert txn["status"] == "COMPLETED"
        uuid.UUID(txn["id"])

    async def test_default_description(self, client, customer):
        response = await deposit(client, customer, "5")
        assert response.json()["transaction"]["description"] == "Deposit"

    async def test_numeric_amount_accepted(self, client, customer):
        response = await deposit(client, customer, 25.5)
        assert response.status_code == 200
        assert response.json()["newBalance"] == "25.50"

    async def test_repeated_deposits_accumulate(self, client, customer, db_session):
        balances = []
        for _ in range(5):
            response = await deposit(client, customer, "12.34")
            assert response.status_code == 200
            balances.append(Decimal(response.json()["transaction"]["balanceAfter"]))

        assert balances == [Decimal("12.34") * n for n in range(1, 6)]
        assert await balance_cents(db_session, customer["account_id"]) == 6170
        assert await transaction_count(db_session, customer["account_id"]) == 5

    @pytest.mark.parametrize("amount", ["0", "-10", "-0.01"])
    async def test_non_positive_amount_rejected(self, client, customer, db_session, amount):
        response = await deposit(client, customer, amount)
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid deposit amount"}
        assert await transaction_count(db_session, customer["account_id"]) == 0

    async def test_sub_cent_amount_rejected(self, client, customer, db_session):
        response = await deposit(client, customer, "10.001")
        assert response.status_code == 400
        assert response.json() == {"error": "Amount cannot have more than two decimal places"}
        assert await balance_cents(db_session, customer["account_id"]) == 0

    async def test_non_numeric_amount_rejected(self, client, customer):
        response = await deposit(client, customer, "ten dollars")
        assert response.status_code == 400

    async def test_missing_account_id_rejected(self, client, customer):
        response = await client.post(
            "/api/transactions/deposit",
            json={"amount": "10.00"},
            headers=customer["headers"],
        )
        assert response.status_code == 400
        assert response.json() == {"error": "accountId is required"}

    async def test_unknown_account_is_404(self, client, customer):
        response = await deposit(client, customer, "10.00", account_id=str(uuid.uuid4()))
        assert response.status_code == 404
        assert response.json() == {"error": "Account not found or access denied"}

    async def test_other_customers_account_is_404(self, client, customer, second_customer, db_session):
        """Another customer's account looks exactly like a missing one."""
        response = await deposit(client, second_customer, "10.00", account_id=customer["account_id"])
        assert response.status_code == 404
        assert response.json() == {"error": "Account not found or access denied"}
        assert await balance_cents(db_session, customer["account_id"]) == 0

    async def test_requires_authentication(self, client, customer):
        response = await client.post(
            "/api/transactions/deposit",
            json={"accountId": customer["account_id"], "amount": "10.00"},
        )
        assert response.status_code == 401


class TestWithdraw:

    async def test_withdraw_decreases_balance(self, client, customer):
        await deposit(client, customer, "1500.00")
        response = await withdraw(client, customer, "200.00", "ATM withdrawal")
        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Withdrawal successful"
        assert data["newBalance"] == "1300.00"
        assert data["transaction"]["type"] == "WITHDRAWAL"
        assert data["transaction"]["amount"] == "200.00"
        assert data["transaction"]["balanceAfter"] == "1300.00"

    async def test_default_description(self, client, customer):
        await deposit(client, customer, "10")
        response = await withdraw(client, customer, "1")
        assert response.json()["transaction"]["description"] == "Withdrawal"

    async def test_withdraw_entire_balance(self, client, customer, db_session):
        await deposit(client, customer, "50.00")
        response = await withdraw(client, customer, "50.00")
        assert response.status_code == 200
        assert response.json()["newBalance"] == "0.00"
        assert await balance_cents(db_session, customer["account_id"]) == 0

    async def test_overdraw_rejected_without_side_effects(self, client, customer, db_session):
        await deposit(client, customer, "100.00")

        response = await withdraw(client, customer, "100.01")
        assert response.status_code == 400
        assert "Insufficient funds" in response.json()["error"]

        assert await balance_cents(db_session, customer["account_id"]) == 10000
        assert await transaction_count(db_session, customer["account_id"]) == 1

    async def test_withdraw_from_empty_account(self, client, customer):
        response = await withdraw(client, customer, "0.01")
        assert response.status_code == 400

    async def test_non_positive_amount_rejected(self, client, customer):
        response = await withdraw(client, customer, "0")
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid withdrawal amount"}

    async def test_other_customers_account_is_404(self, client, customer, second_customer):
        await deposit(client, customer, "100.00")
        response = await withdraw(client, second_customer, "10.00", account_id=customer["account_id"])
        assert response.status_code == 404


class TestPrecision:

    async def test_one_cent_deposits_sum_exactly(self, client, customer):
        for _ in range(30):
            await deposit(client, customer, "0.01")
        response = await deposit(client, customer, "0.01")
        assert response.json()["newBalance"] == "0.31"

    async def test_float_unfriendly_amounts(self, client, customer):
        """0.1 + 0.2 is exactly 0.30 here."""
        await deposit(client, customer, "0.10")
        response = await deposit(client, customer, "0.20")
        assert response.json()["newBalance"] == "0.30"

    async def test_large_values(self, client, customer):
        await deposit(client, customer, "1000000.00")
        response = await withdraw(client, customer, "999999.99")
        assert response.json()["newBalance"] == "0.01"

    @pytest.mark.parametrize("amount", ["100000000000000000", "1E+20"])
    async def test_oversized_amount_rejected(self, client, customer, db_session, amount):
        response = await deposit(client, customer, amount)
        assert response.status_code == 400
        assert response.json() == {"error": "Amount is too large"}
        assert await balance_cents(db_session, customer["account_id"]) == 0
        assert await transaction_count(db_session, customer["account_id"]) == 0

    async def test_deposit_cannot_overflow_balance(self, client, customer, db_session):
        response = await deposit(client, customer, "92233720368547758.07")
        assert response.status_code == 200
        assert response.json()["newBalance"] == "92233720368547758.07"

        response = await deposit(client, customer, "0.01")
        assert response.status_code == 400
        assert response.json() == {"error": "Deposit would exceed the maximum balance"}

        assert await balance_cents(db_session, customer["account_id"]) == MAX_CENTS
        assert await transaction_count(db_session, customer["account_id"]) == 1


class TestConcurrency:
    """
    Interleaved requests against one account.

    The test engine uses StaticPool, so every request shares a single SQLite
    connection. These tests show that the single-statement UPDATE ... RETURNING
    loses no updates when handlers interleave at await points; they do not
    exercise isolation between separate database transactions.
    """

    async def test_concurrent_deposits_lose_nothing(self, client, customer, db_session):
        results = await asyncio.gather(*[
            deposit(client, customer, "10.00") for _ in range(10)
        ])
        assert all(r.status_code == 200 for r in results)

        assert await balance_cents(db_session, customer["account_id"]) == 10000
        assert await transaction_count(db_session, customer["account_id"]) == 10

        # Every entry saw a distinct post-update balance
        after = sorted(Decimal(r.json()["transaction"]["balanceAfter"]) for r in results)
        assert after == [Decimal(10 * n) for n in range(1, 11)]

    async def test_concurrent_withdrawals_never_overdraw(self, client, customer, db_session):
        await deposit(client, customer, "100.00")

        results = await asyncio.gather(*[
            withdraw(client, customer, "30.00") for _ in range(5)
        ])
        succeeded = [r for r in results if r.status_code == 200]
        assert all(r.status_code in (200, 400) for r in results)
        assert len(succeeded) == 3

        assert await balance_cents(db_session, customer["account_id"]) == 1000


class TestHistory:

    async def test_history_newest_first(self, client, customer):
        await deposit(client, customer, "100.00", "first")
        await withdraw(client, customer, "30.00", "second")
        await deposit(client, customer, "5.00", "third")

        response = await client.get("/api/transactions", headers=customer["headers"])
        assert response.status_code == 200
        data = response.json()

        assert [t["description"] for t in data["transactions"]] == ["third", "second", "first"]
        for txn in data["transactions"]:
            assert txn["account"]["accountType"] == "SAVINGS"
            assert len(txn["account"]["accountNumber"]) == 10

        assert len(data["accounts"]) == 1
        assert data["accounts"][0]["balance"] == "75.00"

    async def test_history_only_shows_own_transactions(self, client, customer, second_customer):
        await deposit(client, customer, "100.00")
        await deposit(client, second_customer, "7.00")

        response = await client.get("/api/transactions", headers=second_customer["headers"])
        data = response.json()
        assert len(data["transactions"]) == 1
        assert data["transactions"][0]["amount"] == "7.00"
        assert [a["id"] for a in data["accounts"]] == [second_customer["account_id"]]

    async def test_balance_after_matches_running_total(self, client, customer):
        amounts = [("d", "100.00"), ("w", "25.50"), ("d", "0.75"), ("w", "50.00")]
        running = Decimal("0")
        for kind, amount in amounts:
            if kind == "d":
                await deposit(client, customer, amount)
                running += Decimal(amount)
            else:
                await withdraw(client, customer, amount)
                running -= Decimal(amount)

        response = await client.get("/api/transactions", headers=customer["headers"])
        newest = response.json()["transactions"][0]
        assert Decimal(newest["balanceAfter"]) == running
        assert response.json()["accounts"][0]["balance"] == f"{running:.2f}"

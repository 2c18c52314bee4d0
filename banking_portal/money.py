"""
Fixed-point money helpers.

Balances and amounts are stored as integer cents so that all arithmetic
in the database is exact (0.1 + 0.2 really is 0.3 when it's 10 + 20).
The API speaks decimal strings with exactly two fractional digits
("100.00"); these helpers convert between the two representations.

Cents live in a signed 64-bit INTEGER column, so no amount or balance may
exceed MAX_CENTS.
"""

from decimal import Decimal, InvalidOperation

from banking_portal.exceptions import InvalidAmountError

CENT = Decimal("0.01")
MAX_CENTS = 2**63 - 1


def cents_to_decimal(cents: int) -> Decimal:
    """1050 -> Decimal("10.50")"""
    return Decimal(cents).scaleb(-2)


MAX_AMOUNT = cents_to_decimal(MAX_CENTS)


def decimal_to_cents(amount: Decimal) -> int:
    """
    Decimal("10.50") -> 1050

    Raises:
        InvalidAmountError: If the amount is not finite, has more than two
            fractional digits (sub-cent amounts are never rounded silently),
            or does not fit in MAX_CENTS.
    """
    try:
        if not amount.is_finite():
            raise InvalidAmountError()
        if abs(amount) > MAX_AMOUNT:
            raise InvalidAmountError("Amount is too large")
        if amount != amount.quantize(CENT):
            raise InvalidAmountError("Amount cannot have more than two decimal places")
    except InvalidOperation:
        raise InvalidAmountError()
    return int(amount * 100)

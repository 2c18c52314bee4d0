"""
Custom exception classes and FastAPI exception handlers.

Why custom exceptions?
  FastAPI's default HTTPException works, but custom exceptions let the
  service layer raise domain-specific errors (like InsufficientFundsError)
  without importing HTTP concepts. The handlers registered here translate
  them into HTTP responses.

  Every error response, whatever its origin, has the same shape:

      {"error": "human readable message"}

  so clients only ever need to look at one field.

Exception hierarchy:
    BankAPIError (base)
    ├── ValidationError            400 — malformed or missing input
    │   ├── WeakPasswordError
    │   └── InvalidAmountError
    ├── InsufficientFundsError     400 — withdrawal larger than the balance
    ├── AuthenticationError        401 — missing/invalid/expired credentials
    │   ├── InvalidCredentialsError
    │   └── InvalidTokenError
    ├── AccessDeniedError          403 — valid principal, wrong role
    │   └── AccountDeactivatedError
    ├── AccountNotFoundError       404 — missing or not owned by the caller
    └── DuplicateEmailError /
        DuplicateUsernameError     409 — registration conflicts
"""

import logging
import uuid
from decimal import Decimal

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Base exception
# ---------------------------------------------------------------------------

class BankAPIError(Exception):
    """Base exception for all domain errors. Subclasses set status_code."""

    status_code: int = 400

    def __init__(self, detail: str = "An error occurred"):
        self.detail = detail
        super().__init__(self.detail)


# ---------------------------------------------------------------------------
# Validation (400)
# ---------------------------------------------------------------------------

class ValidationError(BankAPIError):
    """Raised when input is malformed or a required value is missing."""

    status_code = 400


class WeakPasswordError(ValidationError):
    """Raised when a password does not meet the strength policy."""

    def __init__(self):
        super().__init__("Password does not meet requirements")


class InvalidAmountError(ValidationError):
    """Raised for non-positive amounts or amounts with sub-cent precision."""

    def __init__(self, detail: str = "Invalid amount"):
        super().__init__(detail)


class InsufficientFundsError(BankAPIError):
    """
    Raised when a withdrawal would cause a negative balance.

    Attributes:
        account_id: The account that lacks sufficient funds.
        requested: The amount the user tried to withdraw.
        available: The current balance of the account.
    """

    status_code = 400

    def __init__(self, account_id: uuid.UUID, requested: Decimal, available: Decimal):
        self.account_id = account_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient funds: requested {requested}, available {available}"
        )


# ---------------------------------------------------------------------------
# Authentication (401)
# ---------------------------------------------------------------------------

class AuthenticationError(BankAPIError):
    """Raised when a request carries no usable credentials."""

    status_code = 401

    def __init__(self, detail: str = "Authentication required"):
        super().__init__(detail)


class InvalidCredentialsError(AuthenticationError):
    """Raised when login credentials are incorrect.

    The message is identical for an unknown email and a wrong password so
    that the response never reveals which emails are registered.
    """

    def __init__(self):
        super().__init__("Invalid email or password")


class InvalidTokenError(AuthenticationError):
    """Raised when a signed session token fails verification."""

    def __init__(self):
        super().__init__("Invalid or expired token")


# ---------------------------------------------------------------------------
# Authorization (403)
# ---------------------------------------------------------------------------

class AccessDeniedError(BankAPIError):
    """Raised when an authenticated principal lacks the required role."""

    status_code = 403

    def __init__(self, detail: str = "Access denied"):
        super().__init__(detail)


class AccountDeactivatedError(AccessDeniedError):
    """Raised when a deactivated user tries to log in."""

    def __init__(self):
        super().__init__("Account is deactivated")


# ---------------------------------------------------------------------------
# Domain lookups and conflicts
# ---------------------------------------------------------------------------

class AccountNotFoundError(BankAPIError):
    """Raised when an account does not exist or is not owned by the caller.

    Both cases share one message so a customer cannot probe for other
    customers' account ids.
    """

    status_code = 404

    def __init__(self, account_id: uuid.UUID, detail: str = "Account not found or access denied"):
        self.account_id = account_id
        super().__init__(detail)


class DuplicateEmailError(BankAPIError):
    """Raised when attempting to register with an email that's already in use."""

    status_code = 409

    def __init__(self, email: str):
        self.email = email
        super().__init__("Email already registered")


class DuplicateUsernameError(BankAPIError):
    """Raised when attempting to register with a username that's already taken."""

    status_code = 409

    def __init__(self, username: str):
        self.username = username
        super().__init__("Username already taken")


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

def _describe_validation_error(exc: RequestValidationError) -> str:
    """Turn the first pydantic error into a short client-facing message."""
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    # loc looks like ("body", "accountId"); the leading "body" is noise
    location = [str(part) for part in first.get("loc", ()) if part != "body"]
    if first.get("type") == "missing" and location:
        return f"{location[-1]} is required"
    message = first.get("msg", "Invalid value")
    if location:
        return f"{'.'.join(location)}: {message}"
    return message


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register exception handlers with the FastAPI application.

    Each handler maps an exception to an HTTP status code and the uniform
    JSON body {"error": "..."}.

    This is called once during app creation in main.py.
    """

    @app.exception_handler(BankAPIError)
    async def bank_api_error_handler(request: Request, exc: BankAPIError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        # Malformed bodies are client errors, reported as 400 like every
        # other validation failure rather than FastAPI's default 422.
        return JSONResponse(
            status_code=400,
            content={"error": _describe_validation_error(exc)},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        # Infrastructure failures: full detail goes to the log, never to the client
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error"},
        )

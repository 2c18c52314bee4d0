"""
FastAPI dependencies for authentication and authorization.

Dependencies are reusable functions that FastAPI injects into route handlers.
They form a chain that enforces both authentication and role-based access:

  get_current_principal (cookie JWT or bearer token -> Principal)   401
      └── require_roles(...) (Principal -> Principal)               403
              ├── require_customer   [CUSTOMER]
              └── require_staff      [BANKER, ADMIN]

Authentication order (must not change):
  1. A signed JWT from the `auth-token` cookie, else `banker-auth-token`.
     If it verifies, its claims are the principal — no database lookup.
     If it doesn't, we fall through without reporting anything yet.
  2. An opaque access token from `Authorization: Bearer <token>`, looked
     up in the sessions table. Each failure has its own message:
       - unknown token           -> "Invalid access token"
       - past its expiry         -> "Access token expired" (row deleted)
       - owner deactivated       -> "Account is deactivated"
  3. Neither present            -> "No authentication token provided"

A stale cookie never blocks a valid bearer token, and a valid cookie wins
over anything in the header. Both customer and banker cookies produce a
principal from their embedded claims; which cookie carried the token does
not matter.

Unauthenticated (401) and unauthorized (403) are deliberately different so
clients can tell "log in again" apart from "you lack permission".
"""

import logging

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from banking_portal.database import get_db
from banking_portal.exceptions import AccessDeniedError, AuthenticationError, InvalidTokenError
from banking_portal.models.user import UserRole
from banking_portal.security import Principal, verify_signed_token
from banking_portal.services import session_service

logger = logging.getLogger(__name__)

CUSTOMER_COOKIE = "auth-token"
BANKER_COOKIE = "banker-auth-token"
AUTH_COOKIES = (CUSTOMER_COOKIE, BANKER_COOKIE)


def extract_bearer_token(request: Request) -> str | None:
    """Return the token from `Authorization: Bearer <token>`, if any."""
    header = request.headers.get("authorization")
    if not header:
        return None
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer":
        return None
    token = token.strip()
    return token or None


def _signed_token_from_cookies(request: Request) -> str | None:
    for name in AUTH_COOKIES:
        value = request.cookies.get(name)
        if value:
            return value
    return None


async def authenticate(request: Request, db: AsyncSession) -> Principal:
    """
    Resolve the request's principal from the cookie JWT or the bearer token.

    Raises:
        AuthenticationError: With a message naming the specific failure.
    """
    signed_token = _signed_token_from_cookies(request)
    if signed_token:
        try:
            return verify_signed_token(signed_token)
        except InvalidTokenError:
            # Not terminal: an API client may still carry a valid bearer token
            logger.debug("Signed session cookie rejected, trying bearer token")

    access_token = extract_bearer_token(request)
    if access_token is None:
        raise AuthenticationError("No authentication token provided")

    session = await session_service.find_by_token(db, access_token)
    if session is None:
        logger.info("Unknown access token %s", session_service.token_preview(access_token))
        raise AuthenticationError("Invalid access token")

    if session.is_expired():
        # Lazy cleanup; get_db commits the delete before the 401 goes out
        await session_service.delete_session(db, access_token)
        raise AuthenticationError("Access token expired")

    if not session.user.is_active:
        raise AuthenticationError("Account is deactivated")

    return Principal(
        user_id=session.user.id,
        email=session.user.email,
        role=session.user.role,
    )


async def get_current_principal(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> Principal:
    """
    Authenticate the request and return its principal.

    This dependency is the first line of defense: if no usable credential
    is present, the request is rejected with 401 before the handler runs.
    """
    return await authenticate(request, db)


def require_roles(*roles: UserRole):
    """
    Build a dependency that admits only principals holding one of `roles`.

    Usage:
        @router.get("/things")
        async def things(principal: Principal = Depends(require_roles(UserRole.BANKER))):
            ...

    Raises (from the returned dependency):
        AccessDeniedError (403): Authenticated but with another role.
    """
    allowed = frozenset(roles)

    async def dependency(principal: Principal = Depends(get_current_principal)) -> Principal:
        if principal.role not in allowed:
            raise AccessDeniedError()
        return principal

    return dependency


# Only customers own accounts and move money
require_customer = require_roles(UserRole.CUSTOMER)

# BANKER and ADMIN are one capability; no endpoint tells them apart
require_staff = require_roles(UserRole.BANKER, UserRole.ADMIN)

"""
Security utilities: password hashing, signed session tokens, and opaque
access token generation.

This module centralizes all cryptographic operations so they're easy to
audit and update. Three concerns are handled here:

1. PASSWORD HASHING (Argon2)
   - Passwords are never stored in plaintext
   - Argon2 is memory-hard and time-hard; the time cost is configurable
     through PASSWORD_HASH_ROUNDS
   - We use passlib's CryptContext for safe, high-level Argon2 operations

2. SIGNED SESSION TOKENS (JWT)
   - After login, the browser receives a signed JWT in an httpOnly cookie
   - Claims: userId, email, role, plus iss/aud tags and a 7-day exp
   - Signed with SECRET_KEY using HS256; verified without any DB lookup
   - There is no server-side revocation: logging out deletes the cookie

3. OPAQUE ACCESS TOKENS
   - 36 random alphanumeric characters from the OS CSPRNG
   - Carry no information; they only mean something as a key into the
     sessions table (see services/session_service.py)
   - Tracked server-side for 24 hours, so unlike the JWT they can be revoked

The two token types intentionally coexist: the cookie serves browser pages,
the bearer token serves API clients, and the authentication gate accepts
either (see dependencies.py).
"""

import re
import secrets
import string
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from passlib.context import CryptContext

from banking_portal.config import settings
from banking_portal.exceptions import InvalidTokenError
from banking_portal.models.user import UserRole


# ---------------------------------------------------------------------------
# 1. Password Hashing (Argon2)
# ---------------------------------------------------------------------------

# If we ever need to migrate from argon2 to a future scheme, passlib handles
# the transition automatically: old hashes are verified with the original
# scheme, and new passwords use the new one ("deprecated='auto'").
pwd_context = CryptContext(
    schemes=["argon2"],
    deprecated="auto",
    argon2__rounds=settings.PASSWORD_HASH_ROUNDS,
)


def hash_password(plain_password: str) -> str:
    """
    Hash a plaintext password using Argon2id with a random salt.

    Returns:
        An Argon2 hash string (e.g., "$argon2id$v=19$m=65536,t=3,p=4$...").
    """
    return pwd_context.hash(plain_password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a plaintext password against a stored hash.

    Never raises for a wrong password. A stored value that is not a
    recognised hash also just fails verification.
    """
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        return False


# At least 8 characters, one lower case, one upper case, one digit
_PASSWORD_RE = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)[a-zA-Z\d@$!%*?&]{8,}$")
_USERNAME_RE = re.compile(r"^[a-zA-Z0-9_]{3,20}$")


def is_strong_password(password: str) -> bool:
    return bool(_PASSWORD_RE.match(password))


def is_valid_username(username: str) -> bool:
    return bool(_USERNAME_RE.match(username))


# ---------------------------------------------------------------------------
# 2. Signed Session Tokens (JWT)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Principal:
    """The authenticated identity attached to a request."""
    user_id: uuid.UUID
    email: str
    role: UserRole


def issue_signed_token(principal: Principal, expires_delta: timedelta | None = None) -> str:
    """
    Create a signed JWT for the given principal.

    Args:
        principal: The identity to embed.
        expires_delta: Optional custom lifetime. Defaults to JWT_EXPIRE_DAYS.

    Returns:
        An encoded JWT string.
    """
    if expires_delta is None:
        expires_delta = timedelta(days=settings.JWT_EXPIRE_DAYS)

    now = datetime.now(timezone.utc)
    claims = {
        "userId": str(principal.user_id),
        "email": principal.email,
        "role": principal.role.value,
        "iss": settings.JWT_ISSUER,
        "aud": settings.JWT_AUDIENCE,
        "iat": now,
        "exp": now + expires_delta,
    }
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def verify_signed_token(token: str) -> Principal:
    """
    Verify a signed JWT and return the principal it carries.

    Checks the signature, expiry, issuer and audience.

    Raises:
        InvalidTokenError: On any signature mismatch, malformed structure,
            missing claim, or lapsed expiry.
    """
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
            audience=settings.JWT_AUDIENCE,
            issuer=settings.JWT_ISSUER,
        )
        return Principal(
            user_id=uuid.UUID(payload["userId"]),
            email=payload["email"],
            role=UserRole(payload["role"]),
        )
    except (JWTError, KeyError, TypeError, ValueError):
        raise InvalidTokenError()


# ---------------------------------------------------------------------------
# 3. Opaque Access Tokens
# ---------------------------------------------------------------------------

ACCESS_TOKEN_LENGTH = 36
_TOKEN_ALPHABET = string.ascii_letters + string.digits


def generate_access_token() -> str:
    """Return a 36-character random alphanumeric token (no embedded structure)."""
    return "".join(secrets.choice(_TOKEN_ALPHABET) for _ in range(ACCESS_TOKEN_LENGTH))


def access_token_expiration(now: datetime | None = None) -> datetime:
    """Expiry timestamp for a session created at `now` (default: current time)."""
    if now is None:
        now = datetime.now(timezone.utc)
    return now + timedelta(hours=settings.ACCESS_TOKEN_EXPIRE_HOURS)

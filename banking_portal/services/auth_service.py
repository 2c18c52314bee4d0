"""
Authentication service — registration, login and logout business logic.

This module contains the core auth logic, separated from HTTP concerns.
The router calls these functions and translates the results into HTTP
responses (and cookies). This separation means the business logic can be
tested without spinning up a web server.

Registration flow:
  1. Enforce password strength and username format
  2. Reject duplicate email / username
  3. Hash the password with Argon2id
  4. Create the User (always CUSTOMER) and a default SAVINGS account

Login flow:
  1. Look up user by email and verify the password
  2. Reject deactivated users and role mismatches
  3. Issue a signed JWT (cookie) and an opaque access token (session row)
  4. Make sure a customer has at least one account

Security notes:
  - Login returns the same error for "wrong password" and "email not found"
    to prevent user enumeration attacks. The password is verified BEFORE
    the active/role checks so those 403s are only visible to someone who
    already knows the password.
  - Neither passwords nor tokens are ever logged.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from banking_portal.exceptions import (
    AccessDeniedError,
    AccountDeactivatedError,
    DuplicateEmailError,
    DuplicateUsernameError,
    InvalidCredentialsError,
    ValidationError,
    WeakPasswordError,
)
from banking_portal.models.account import Account
from banking_portal.models.user import User, UserRole
from banking_portal.security import (
    Principal,
    hash_password,
    is_strong_password,
    is_valid_username,
    issue_signed_token,
    verify_password,
)
from banking_portal.services import account_service, session_service

logger = logging.getLogger(__name__)


@dataclass
class LoginResult:
    """Everything a successful login hands back to the router."""
    user: User
    jwt: str
    access_token: str
    expires_at: datetime
    accounts: list[Account]


async def register(
    db: AsyncSession,
    email: str,
    password: str,
    first_name: str,
    last_name: str,
    username: str | None = None,
) -> User:
    """
    Register a new customer and open their default account.

    Both records are created in the request's database transaction — if
    either fails, neither is persisted.

    Raises:
        WeakPasswordError: Password fails the strength policy.
        ValidationError: Username has the wrong format.
        DuplicateEmailError: The email is already registered.
        DuplicateUsernameError: The username is already taken.
    """
    if not is_strong_password(password):
        raise WeakPasswordError()

    if username is not None and not is_valid_username(username):
        raise ValidationError(
            "Username must be 3-20 characters, alphanumeric and underscores only"
        )

    # Check for existing email
    result = await db.execute(select(User.id).where(User.email == email))
    if result.scalar_one_or_none() is not None:
        raise DuplicateEmailError(email)

    if username is not None:
        result = await db.execute(select(User.id).where(User.username == username))
        if result.scalar_one_or_none() is not None:
            raise DuplicateUsernameError(username)

    user = User(
        email=email,
        username=username,
        hashed_password=hash_password(password),
        first_name=first_name,
        last_name=last_name,
        role=UserRole.CUSTOMER,
    )
    db.add(user)
    # Flush to get the user.id assigned (needed for the FK below)
    await db.flush()

    await account_service.create_account(db, user.id)

    logger.info("Registered user %s", user.id)
    return user


async def _authenticate_credentials(db: AsyncSession, email: str, password: str) -> User:
    """Return the user for a correct email/password pair, else raise."""
    result = await db.execute(
        select(User)
        .options(selectinload(User.accounts))
        .where(User.email == email)
    )
    user = result.scalar_one_or_none()

    # Same error for both cases — prevents user enumeration
    if user is None:
        raise InvalidCredentialsError()

    if not verify_password(password, user.hashed_password):
        raise InvalidCredentialsError()

    return user


async def _issue_tokens(db: AsyncSession, user: User) -> tuple[str, str, datetime]:
    principal = Principal(user_id=user.id, email=user.email, role=user.role)
    jwt_token = issue_signed_token(principal)
    session = await session_service.create_session(db, user.id)
    return jwt_token, session.token, session.expires_at


async def login(
    db: AsyncSession,
    email: str,
    password: str,
    role: UserRole = UserRole.CUSTOMER,
) -> LoginResult:
    """
    Authenticate a user and issue both credentials.

    Args:
        db: Database session.
        email: User's email.
        password: Plaintext password to verify.
        role: Role the caller expects. CUSTOMER accepts any user; any other
              value must match the user's role exactly.

    Raises:
        InvalidCredentialsError: Unknown email or wrong password.
        AccountDeactivatedError: The user has been deactivated.
        AccessDeniedError: The user's role doesn't match `role`.
    """
    user = await _authenticate_credentials(db, email, password)

    if not user.is_active:
        raise AccountDeactivatedError()

    if role != UserRole.CUSTOMER and user.role != role:
        raise AccessDeniedError()

    jwt_token, access_token, expires_at = await _issue_tokens(db, user)

    accounts = list(user.accounts)
    # Customers always have somewhere to deposit into
    if user.role == UserRole.CUSTOMER and not accounts:
        accounts.append(await account_service.create_account(db, user.id))

    logger.info("User %s logged in", user.id)
    return LoginResult(
        user=user,
        jwt=jwt_token,
        access_token=access_token,
        expires_at=expires_at,
        accounts=accounts,
    )


async def banker_login(db: AsyncSession, email: str, password: str) -> LoginResult:
    """
    Authenticate a staff user (BANKER or ADMIN).

    Raises:
        InvalidCredentialsError: Unknown email or wrong password.
        AccessDeniedError: The user is a customer.
        AccountDeactivatedError: The user has been deactivated.
    """
    user = await _authenticate_credentials(db, email, password)

    if not user.role.is_staff:
        raise AccessDeniedError("Access denied. Banker credentials required.")

    if not user.is_active:
        raise AccountDeactivatedError()

    jwt_token, access_token, expires_at = await _issue_tokens(db, user)

    logger.info("Banker %s logged in", user.id)
    return LoginResult(
        user=user,
        jwt=jwt_token,
        access_token=access_token,
        expires_at=expires_at,
        accounts=[],
    )


async def logout(db: AsyncSession, access_token: str | None) -> None:
    """
    End the session identified by `access_token`, if any.

    Logout always succeeds from the caller's point of view: an unknown or
    already-deleted token is fine. The opportunistic sweep of expired
    sessions runs in its own savepoint; if it fails it is logged and rolled
    back without undoing the session delete.
    """
    if access_token:
        await session_service.delete_session(db, access_token)
    else:
        logger.debug("Logout without an access token")

    try:
        async with db.begin_nested():
            await session_service.cleanup_expired_sessions(db)
    except SQLAlchemyError:
        logger.warning("Session cleanup failed during logout", exc_info=True)


async def set_user_active(db: AsyncSession, user_id: uuid.UUID, active: bool) -> bool:
    """
    Activate or deactivate a user. Deactivation also revokes their sessions.

    Signed cookies already issued stay cryptographically valid until they
    expire; a deactivated user simply can no longer log in or use a bearer
    token.

    Returns:
        False if no such user exists.
    """
    user = await db.get(User, user_id)
    if user is None:
        return False
    user.is_active = active
    if not active:
        revoked = await session_service.delete_all_user_sessions(db, user_id)
        logger.info("Deactivated user %s, revoked %d session(s)", user_id, revoked)
    else:
        logger.info("Reactivated user %s", user_id)
    return True

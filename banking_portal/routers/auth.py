"""
Authentication router — register, login, banker login and logout.

These are the only endpoints that don't require an authenticated caller.

Endpoints:
  POST /api/auth/register      — Create a customer and their first account
  POST /api/auth/login         — Authenticate; sets the `auth-token` cookie
  POST /api/auth/banker-login  — Staff login; sets the `banker-auth-token` cookie
  POST /api/auth/logout        — End the session and clear both cookies
  GET  /api/auth/logout        — Same, for plain links

Both logins return the signed JWT and the opaque access token in the body
as well. Browsers use the cookie; API clients send the access token as
`Authorization: Bearer <token>`.

Security audit notes:
  - Plaintext passwords exist only in memory during request processing;
    they are hashed before any database operation and never logged.
  - Cookies are httpOnly, SameSite=strict, and Secure in production.
  - No request body logging middleware is installed, so POST bodies
    containing passwords are not written to any log file.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from banking_portal.config import settings
from banking_portal.database import get_db
from banking_portal.dependencies import (
    AUTH_COOKIES,
    BANKER_COOKIE,
    CUSTOMER_COOKIE,
    extract_bearer_token,
)
from banking_portal.schemas.account import AccountSummary
from banking_portal.schemas.auth import (
    BankerLoginRequest,
    BankerLoginResponse,
    LoginRequest,
    LoginResponse,
    LogoutResponse,
    RegisterRequest,
    RegisterResponse,
    TokenBundle,
)
from banking_portal.schemas.user import UserSummary
from banking_portal.services import auth_service
from banking_portal.services.auth_service import LoginResult

router = APIRouter(prefix="/api/auth", tags=["Auth"])


def _set_auth_cookie(response: Response, name: str, token: str) -> None:
    response.set_cookie(
        key=name,
        value=token,
        max_age=settings.JWT_EXPIRE_DAYS * 24 * 60 * 60,
        path="/",
        httponly=True,
        secure=settings.cookie_secure,
        samesite="strict",
    )


def _tokens(result: LoginResult) -> TokenBundle:
    return TokenBundle(
        jwt=result.jwt,
        access_token=result.access_token,
        expires_at=result.expires_at,
    )


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new customer",
)
async def register(
    request: RegisterRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Register a new customer.

    Creates the User and a default SAVINGS account with a zero balance in
    a single atomic transaction. No token is issued; log in afterwards.

    - **email**: Must be a valid email format and not already registered
    - **password**: 8+ characters with a lowercase letter, an uppercase
      letter and a digit; only letters, digits and `@$!%*?&`
    - **firstName** / **lastName**: Required
    - **username**: Optional, 3-20 characters of letters, digits, underscore
    """
    user = await auth_service.register(
        db=db,
        email=request.email,
        password=request.password,
        first_name=request.first_name,
        last_name=request.last_name,
        username=request.username,
    )
    return RegisterResponse(user=UserSummary.model_validate(user))


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Authenticate and get tokens",
)
async def login(
    request: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    """
    Authenticate with email and password.

    Sets the `auth-token` cookie (signed JWT, 7 days) and returns both the
    JWT and an opaque access token (24 hours) for the Authorization header:

        Authorization: Bearer <accessToken>
    """
    result = await auth_service.login(
        db=db,
        email=request.email,
        password=request.password,
        role=request.role,
    )
    _set_auth_cookie(response, CUSTOMER_COOKIE, result.jwt)

    return LoginResponse(
        user=UserSummary.model_validate(result.user),
        tokens=_tokens(result),
        accounts=[AccountSummary.model_validate(a) for a in result.accounts],
    )


@router.post(
    "/banker-login",
    response_model=BankerLoginResponse,
    summary="Authenticate a banker or admin",
)
async def banker_login(
    request: BankerLoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    """Staff login. Customers are rejected with 403."""
    result = await auth_service.banker_login(
        db=db,
        email=request.email,
        password=request.password,
    )
    _set_auth_cookie(response, BANKER_COOKIE, result.jwt)

    return BankerLoginResponse(
        user=UserSummary.model_validate(result.user),
        tokens=_tokens(result),
    )


@router.api_route(
    "/logout",
    methods=["GET", "POST"],
    response_model=LogoutResponse,
    summary="Log out and clear auth cookies",
)
async def logout(
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    """
    End the caller's session.

    Always succeeds: the bearer token's session is deleted if present,
    expired sessions are swept, and both auth cookies are cleared.
    """
    await auth_service.logout(db, extract_bearer_token(request))

    for name in AUTH_COOKIES:
        response.delete_cookie(
            key=name,
            path="/",
            httponly=True,
            secure=settings.cookie_secure,
            samesite="strict",
        )

    return LogoutResponse(timestamp=datetime.now(timezone.utc))

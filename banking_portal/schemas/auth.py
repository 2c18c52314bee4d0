"""
Pydantic schemas for authentication endpoints (register, login, logout).

These schemas define the request/response contracts for the auth API.
Pydantic checks structure and types (a missing field or a malformed email
is rejected before our code runs, as a 400). Business rules that produce
specific messages — password strength, username format — are enforced in
services/auth_service.py.
"""

from datetime import datetime

from pydantic import EmailStr, Field

from banking_portal.models.user import UserRole
from banking_portal.schemas.account import AccountSummary
from banking_portal.schemas.base import ApiModel
from banking_portal.schemas.user import UserSummary


class RegisterRequest(ApiModel):
    """Request body for POST /api/auth/register."""
    email: EmailStr
    password: str = Field(min_length=1)
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    username: str | None = None


class LoginRequest(ApiModel):
    """Request body for POST /api/auth/login.

    `role` lets a staff login page reuse this endpoint: anything other
    than CUSTOMER must match the user's actual role.
    """
    email: EmailStr
    password: str = Field(min_length=1)
    role: UserRole = UserRole.CUSTOMER


class BankerLoginRequest(ApiModel):
    """Request body for POST /api/auth/banker-login."""
    email: EmailStr
    password: str = Field(min_length=1)


class TokenBundle(ApiModel):
    """Both credentials issued at login."""
    jwt: str
    access_token: str
    expires_at: datetime


class RegisterResponse(ApiModel):
    message: str = "User registered successfully"
    user: UserSummary


class LoginResponse(ApiModel):
    user: UserSummary
    tokens: TokenBundle
    accounts: list[AccountSummary]


class BankerLoginResponse(ApiModel):
    user: UserSummary
    tokens: TokenBundle


class LogoutResponse(ApiModel):
    message: str = "Logged out successfully"
    timestamp: datetime

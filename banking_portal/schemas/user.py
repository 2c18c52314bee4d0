"""
Pydantic schemas for User-related responses.

These schemas control what user data is exposed through the API.
Notice that hashed_password is NEVER included in any response schema —
this is a critical security boundary.
"""

import uuid

from banking_portal.models.user import UserRole
from banking_portal.schemas.base import ApiModel


class UserSummary(ApiModel):
    """Public representation of a User (never includes password hash)."""
    id: uuid.UUID
    email: str
    username: str | None
    first_name: str
    last_name: str
    role: UserRole

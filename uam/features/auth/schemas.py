"""
Pydantic schemas for login.
"""
from pydantic import Field

from uam.core.database.base import CamelModel
from uam.features.users.schemas import UserResponse


class LoginRequest(CamelModel):
    """Credentials for login. ``username`` may also be the account's email."""
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class LoginResponse(CamelModel):
    token: str
    token_type: str = "bearer"
    user: UserResponse

"""
Pydantic schemas for user-related requests and responses.
"""
import re
from datetime import datetime
from typing import Optional

from pydantic import ConfigDict, EmailStr, Field, field_validator

from uam.core.database.base import CamelModel
from uam.features.users.models import Role


USERNAME_RE = re.compile(r"^[A-Za-z0-9_]{3,50}$")
NAME_RE = re.compile(r"^[A-Za-z\s\-']{2,50}$")
PASSWORD_SPECIALS = "!@#$%^&*"


def validate_username(v: str) -> str:
    v = v.strip()
    if not USERNAME_RE.match(v):
        raise ValueError("Username must be 3-50 characters long and contain only letters, numbers, and underscores")
    return v


def validate_name(v: str) -> str:
    v = v.strip()
    if not NAME_RE.match(v):
        raise ValueError("Name must be 2-50 characters long and contain only letters, spaces, hyphens, and apostrophes")
    return v


def validate_password(v: str) -> str:
    """Password strength rules; bcrypt only reads the first 72 bytes."""
    if len(v) < 8:
        raise ValueError("Password must be at least 8 characters long")
    if len(v.encode("utf-8")) > 72:
        raise ValueError("Password must be at most 72 bytes long")
    if not re.search(r"[A-Z]", v):
        raise ValueError("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", v):
        raise ValueError("Password must contain at least one lowercase letter")
    if not re.search(r"[0-9]", v):
        raise ValueError("Password must contain at least one number")
    if not any(c in PASSWORD_SPECIALS for c in v):
        raise ValueError(f"Password must contain at least one special character ({PASSWORD_SPECIALS})")
    return v


class UserCreate(CamelModel):
    """Schema for creating a new user."""
    username: str
    email: EmailStr
    first_name: str
    last_name: str
    password: str
    role: Role
    groups: list[str] = Field(default_factory=list, description="Group IDs the user joins")

    @field_validator("email", mode="before")
    @classmethod
    def strip_email(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("username")
    @classmethod
    def username_format(cls, v: str) -> str:
        return validate_username(v)

    @field_validator("first_name", "last_name")
    @classmethod
    def name_format(cls, v: str) -> str:
        return validate_name(v)

    @field_validator("password")
    @classmethod
    def password_strength(cls, v: str) -> str:
        return validate_password(v)


class UserUpdate(CamelModel):
    """Schema for updating user information. Omitted fields are left unchanged."""
    username: Optional[str] = None
    email: Optional[EmailStr] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    password: Optional[str] = None
    role: Optional[Role] = None
    groups: Optional[list[str]] = None

    @field_validator("email", mode="before")
    @classmethod
    def strip_email(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("username")
    @classmethod
    def username_format(cls, v: Optional[str]) -> Optional[str]:
        return validate_username(v) if v is not None else v

    @field_validator("first_name", "last_name")
    @classmethod
    def name_format(cls, v: Optional[str]) -> Optional[str]:
        return validate_name(v) if v is not None else v

    @field_validator("password")
    @classmethod
    def password_strength(cls, v: Optional[str]) -> Optional[str]:
        return validate_password(v) if v is not None else v


class UserResponse(CamelModel):
    """Schema for user responses. Never carries the password hash."""
    id: str
    username: str
    email: str
    first_name: str
    last_name: str
    role: Role
    groups: list[str]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

"""
User model and its patch struct.
"""
import enum

from pydantic import BaseModel, Field

from uam.core.database.base import TimestampedRecord


class Role(str, enum.Enum):
    """Coarse per-user tier. Only ADMIN matters to permission resolution."""
    ADMIN = "admin"
    MAINTAINER = "maintainer"
    USER = "user"


class User(TimestampedRecord):
    """
    User record.

    ``username`` is unique case-sensitively, ``email`` case-insensitively.
    Every id in ``groups`` referenced an existing Group when it was written;
    deleting a Group prunes it from here.
    """
    username: str
    email: str
    first_name: str
    last_name: str
    password_hash: str
    role: Role = Role.USER
    groups: list[str] = Field(default_factory=list)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username={self.username!r}, role={self.role.value})>"


class UserPatch(BaseModel):
    """Partial update for a User; only fields explicitly set are applied."""
    username: str | None = None
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    password_hash: str | None = None
    role: Role | None = None
    groups: list[str] | None = None

"""
Policy model, the embedded Permission value type, and the policy patch struct.
"""
from pydantic import BaseModel, ConfigDict, Field

from uam.core.database.base import TimestampedRecord


class Permission(BaseModel):
    """
    A (resource, action) pair representing one allowed operation.

    Matching is exact string equality: no wildcards, no case-folding.
    Examples:
    - resource="users", action="read"
    - resource="access-requests", action="create"
    """
    model_config = ConfigDict(frozen=True)

    resource: str = Field(..., min_length=1, max_length=100, description="Resource name (e.g., 'users')")
    action: str = Field(..., min_length=1, max_length=50, description="Action name (e.g., 'read')")

    def __str__(self) -> str:
        return f"{self.resource}:{self.action}"


class Policy(TimestampedRecord):
    """
    Named bundle of permissions.

    ``name`` is unique case-insensitively. Duplicate permissions are allowed
    and their order carries no meaning.
    """
    name: str
    permissions: list[Permission] = Field(default_factory=list)

    def __repr__(self) -> str:
        return f"<Policy(id={self.id}, name={self.name!r}, permissions={len(self.permissions)})>"


class PolicyPatch(BaseModel):
    """Partial update for a Policy."""
    name: str | None = None
    permissions: list[Permission] | None = None

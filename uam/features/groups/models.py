"""
Group model and its patch struct.
"""
from pydantic import BaseModel, Field

from uam.core.database.base import TimestampedRecord


class Group(TimestampedRecord):
    """
    Named bundle of policies. Users join groups to inherit permissions.

    ``name`` is unique case-insensitively. Every id in ``policies`` referenced
    an existing Policy when it was written; deleting a Policy prunes it here.
    """
    name: str
    policies: list[str] = Field(default_factory=list)

    def __repr__(self) -> str:
        return f"<Group(id={self.id}, name={self.name!r})>"


class GroupPatch(BaseModel):
    """Partial update for a Group."""
    name: str | None = None
    policies: list[str] | None = None

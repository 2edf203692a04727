"""
Pydantic schemas for group requests and responses.
"""
import re
from datetime import datetime
from typing import List, Optional

from pydantic import ConfigDict, Field, field_validator

from uam.core.database.base import CamelModel


NAME_RE = re.compile(r"^[A-Za-z0-9\s\-_]{3,100}$")


def validate_entity_name(v: str) -> str:
    """Group and policy names: 3-100 letters, numbers, spaces, hyphens, underscores."""
    v = v.strip()
    if not NAME_RE.match(v):
        raise ValueError("Name must be 3-100 characters long and contain only letters, numbers, spaces, hyphens, and underscores")
    return v


class GroupCreate(CamelModel):
    """Schema for creating a new group."""
    name: str = Field(..., description="Unique group name (case-insensitive)")
    policies: List[str] = Field(default_factory=list, description="Policy IDs attached to the group")

    @field_validator("name")
    @classmethod
    def name_format(cls, v: str) -> str:
        return validate_entity_name(v)


class GroupUpdate(CamelModel):
    """Schema for updating a group."""
    name: Optional[str] = None
    policies: Optional[List[str]] = None

    @field_validator("name")
    @classmethod
    def name_format(cls, v: Optional[str]) -> Optional[str]:
        return validate_entity_name(v) if v is not None else v


class GroupResponse(CamelModel):
    """Schema for group response."""
    id: str
    name: str
    policies: List[str]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

"""
Pydantic schemas for policy requests and responses.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import ConfigDict, Field, field_validator

from uam.core.database.base import CamelModel
from uam.features.groups.schemas import validate_entity_name
from uam.features.policies.models import Permission


class PolicyCreate(CamelModel):
    """Schema for creating a new policy."""
    name: str = Field(..., description="Unique policy name (case-insensitive)")
    permissions: List[Permission] = Field(..., description="Permissions the policy grants")

    @field_validator("name")
    @classmethod
    def name_format(cls, v: str) -> str:
        return validate_entity_name(v)


class PolicyUpdate(CamelModel):
    """Schema for updating a policy."""
    name: Optional[str] = None
    permissions: Optional[List[Permission]] = None

    @field_validator("name")
    @classmethod
    def name_format(cls, v: Optional[str]) -> Optional[str]:
        return validate_entity_name(v) if v is not None else v


class PolicyResponse(CamelModel):
    """Schema for policy response."""
    id: str
    name: str
    permissions: List[Permission]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

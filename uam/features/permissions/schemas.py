"""
Pydantic schemas for permission inspection.
"""
from typing import List, Optional

from pydantic import Field

from uam.core.database.base import CamelModel
from uam.features.policies.models import Permission


class PermissionCheckRequest(CamelModel):
    """Schema for checking if the caller has a permission."""
    resource: str = Field(..., min_length=1, description="Resource type")
    action: str = Field(..., min_length=1, description="Action")


class PermissionCheckResponse(CamelModel):
    """Schema for permission check response."""
    allowed: bool
    reason: Optional[str] = None


class UserPermissionsResponse(CamelModel):
    """
    Permissions the caller holds.

    Admins hold every permission implicitly, so ``permissions`` is left empty
    for them and ``is_admin`` is set.
    """
    user_id: str
    is_admin: bool
    groups: List[str] = []
    permissions: List[Permission] = []  # Deduplicated across all groups

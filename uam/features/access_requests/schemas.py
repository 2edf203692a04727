"""
Pydantic schemas for access request workflow.
"""
from datetime import datetime
from typing import Optional

from pydantic import ConfigDict, Field

from uam.core.database.base import CamelModel
from uam.features.access_requests.models import AccessRequestStatus


class AccessRequestCreate(CamelModel):
    """Schema for creating an access request."""
    group_id: str = Field(..., min_length=1, description="Group ID to request access to")
    reason: Optional[str] = Field(None, max_length=500, description="Optional reason for the request")


class AccessRequestProcess(CamelModel):
    """
    Schema for processing (approve/deny) an access request.

    ``status`` is checked by the workflow, so "pending" or an unknown value is
    reported as a validation error with a precise message.
    """
    status: str = Field(..., description="approved or denied")
    reason: Optional[str] = Field(None, max_length=500, description="Replaces the stored reason when provided")


class AccessRequestResponse(CamelModel):
    """Schema for access request responses."""
    id: str
    user_id: str
    group_id: str
    status: AccessRequestStatus
    reason: Optional[str] = None
    requested_at: datetime
    processed_at: Optional[datetime] = None
    processed_by: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

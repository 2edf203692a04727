"""
Access request model.
"""
import enum
from datetime import datetime

from pydantic import Field

from uam.core.database.base import Record, utcnow


class AccessRequestStatus(str, enum.Enum):
    """Status of group access requests. APPROVED and DENIED are terminal."""
    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"


class AccessRequest(Record):
    """
    A user-initiated, admin-adjudicated request to join a group.

    ``processed_at`` and ``processed_by`` are set only on the transition out
    of PENDING. ``user_id`` is not revalidated after creation.
    """
    user_id: str
    group_id: str
    status: AccessRequestStatus = AccessRequestStatus.PENDING
    reason: str | None = None
    requested_at: datetime = Field(default_factory=utcnow)
    processed_at: datetime | None = None
    processed_by: str | None = None

    @property
    def is_pending(self) -> bool:
        return self.status == AccessRequestStatus.PENDING

    def __repr__(self) -> str:
        return f"<AccessRequest(id={self.id}, user_id={self.user_id}, group_id={self.group_id}, status={self.status.value})>"

"""
Record base classes and common model utilities.

All stored entities should inherit from Record (or TimestampedRecord).

Records are pydantic models with snake_case attributes and camelCase keys on
disk and on the wire, so the JSON snapshot keeps the ``firstName`` /
``createdAt`` layout of the persisted tables.
"""
from datetime import datetime, timezone
from typing import TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from ulid import ULID


def generate_ulid() -> str:
    """Generate a new ULID string."""
    return str(ULID())


def utcnow() -> datetime:
    """Current instant, timezone-aware."""
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    """
    Base for records and request/response schemas.

    Accepts both ``first_name`` and ``firstName`` on input.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Record(CamelModel):
    """
    Base class for all stored entities.

    Usage:
        from uam.core.database.base import Record

        class Thing(Record):
            name: str
    """
    id: str = Field(default_factory=generate_ulid)

    def to_document(self) -> dict:
        """Flat field/value mapping as written to the snapshot."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class TimestampedRecord(Record):
    """
    Record with created_at and updated_at timestamps.

    ``updated_at`` is refreshed by ``apply_patch``; records are never mutated
    in place, so a record handed out by the store stays a stable snapshot.
    """
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


RecordT = TypeVar("RecordT", bound=TimestampedRecord)


def apply_patch(entity: RecordT, patch: BaseModel) -> RecordT:
    """
    Return a copy of ``entity`` with the fields explicitly set on ``patch``.

    Fields left unset on the patch keep their current value. ``updated_at``
    is always refreshed.
    """
    changes = {name: getattr(patch, name) for name in patch.model_fields_set}
    changes["updated_at"] = utcnow()
    return entity.model_copy(update=changes)

"""
Error taxonomy shared by the store, the resolution engine and the workflow.

Every error is an expected, locally recoverable outcome except the
``StoreError`` family, which aborts the operation that raised it. The HTTP
layer maps each class to a status code through ``status_code``.
"""
from typing import Any, Iterable


class UAMError(Exception):
    """Base class for all domain errors."""
    status_code: int = 400
    error: str = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"detail": self.message, "error": self.error}


class NotFound(UAMError):
    """An entity id does not resolve."""
    status_code = 404
    error = "not_found"

    def __init__(self, entity: str, entity_id: str):
        super().__init__(f"{entity} not found")
        self.entity = entity
        self.entity_id = entity_id

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "id": self.entity_id}


class ValidationError(UAMError):
    """
    Malformed or dangling-reference input.

    ``kind`` tells apart a missing required field, a format/range violation,
    and a reference to an id that does not exist.
    """
    status_code = 400
    error = "validation_error"

    MISSING = "missing"
    FORMAT = "format"
    REFERENCE = "reference"

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        kind: str = FORMAT,
        invalid_ids: Iterable[str] = (),
    ):
        super().__init__(message)
        self.field = field
        self.kind = kind
        self.invalid_ids = list(invalid_ids)

    def to_dict(self) -> dict[str, Any]:
        payload = {**super().to_dict(), "kind": self.kind}
        if self.field:
            payload["field"] = self.field
        if self.invalid_ids:
            payload["invalidIds"] = self.invalid_ids
        return payload


class Conflict(UAMError):
    """Uniqueness violation on username, email, group name or policy name."""
    status_code = 409
    error = "conflict"

    def __init__(self, message: str, *, field: str | None = None):
        super().__init__(message)
        self.field = field

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        if self.field:
            payload["field"] = self.field
        return payload


class Unauthenticated(UAMError):
    """The caller identity could not be established or no longer resolves."""
    status_code = 401
    error = "unauthenticated"


class Forbidden(UAMError):
    """The caller is known but the permission check denied the operation."""
    status_code = 403
    error = "forbidden"


class StateError(UAMError):
    """Illegal state transition (e.g. processing a non-pending request)."""
    status_code = 400
    error = "invalid_state"


class StoreError(UAMError):
    """Durable storage fault."""
    status_code = 500
    error = "store_error"


class StoreLoadError(StoreError):
    """The backing file exists but could not be read or parsed."""
    error = "store_load_error"


class StoreWriteError(StoreError):
    """The snapshot could not be written; the mutation did not happen."""
    error = "store_write_error"

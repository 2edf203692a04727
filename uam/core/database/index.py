"""
Uniqueness and referential checks over the store tables.

Callers that act on the result must hold the store lock (inside
``store.read()`` or ``store.transaction()``) so the check and the write
see the same tables.
"""
from typing import Iterable, Optional

from uam.core.database.engine import Store
from uam.core.errors import Conflict, ValidationError


# ============================================================================
# Uniqueness
# ============================================================================

def is_username_unique(store: Store, username: str, exclude_id: Optional[str] = None) -> bool:
    """Usernames compare case-sensitively."""
    return not any(
        user.username == username and user.id != exclude_id
        for user in store.users.values()
    )


def is_email_unique(store: Store, email: str, exclude_id: Optional[str] = None) -> bool:
    """Emails compare case-insensitively."""
    email = email.lower()
    return not any(
        user.email.lower() == email and user.id != exclude_id
        for user in store.users.values()
    )


def is_group_name_unique(store: Store, name: str, exclude_id: Optional[str] = None) -> bool:
    name = name.lower()
    return not any(
        group.name.lower() == name and group.id != exclude_id
        for group in store.groups.values()
    )


def is_policy_name_unique(store: Store, name: str, exclude_id: Optional[str] = None) -> bool:
    name = name.lower()
    return not any(
        policy.name.lower() == name and policy.id != exclude_id
        for policy in store.policies.values()
    )


# ============================================================================
# Referential integrity
# ============================================================================

def validate_group_ids(store: Store, group_ids: Iterable[str]) -> list[str]:
    """Return the ids that do not name an existing group, in input order."""
    return [group_id for group_id in group_ids if group_id not in store.groups]


def validate_policy_ids(store: Store, policy_ids: Iterable[str]) -> list[str]:
    """Return the ids that do not name an existing policy, in input order."""
    return [policy_id for policy_id in policy_ids if policy_id not in store.policies]


# ============================================================================
# Raising variants used by the write paths
# ============================================================================

def ensure_username_unique(store: Store, username: str, exclude_id: Optional[str] = None) -> None:
    if not is_username_unique(store, username, exclude_id):
        raise Conflict("Username already exists", field="username")


def ensure_email_unique(store: Store, email: str, exclude_id: Optional[str] = None) -> None:
    if not is_email_unique(store, email, exclude_id):
        raise Conflict("Email already exists", field="email")


def ensure_group_name_unique(store: Store, name: str, exclude_id: Optional[str] = None) -> None:
    if not is_group_name_unique(store, name, exclude_id):
        raise Conflict("Group name already exists", field="name")


def ensure_policy_name_unique(store: Store, name: str, exclude_id: Optional[str] = None) -> None:
    if not is_policy_name_unique(store, name, exclude_id):
        raise Conflict("Policy name already exists", field="name")


def ensure_group_ids(store: Store, group_ids: Iterable[str]) -> None:
    invalid = validate_group_ids(store, group_ids)
    if invalid:
        raise ValidationError(
            "Invalid group IDs",
            field="groups",
            kind=ValidationError.REFERENCE,
            invalid_ids=invalid,
        )


def ensure_policy_ids(store: Store, policy_ids: Iterable[str]) -> None:
    invalid = validate_policy_ids(store, policy_ids)
    if invalid:
        raise ValidationError(
            "Invalid policy IDs",
            field="policies",
            kind=ValidationError.REFERENCE,
            invalid_ids=invalid,
        )

"""
User operations over the entity store.
"""
from typing import Optional

from uam.core.database import index
from uam.core.database.base import apply_patch
from uam.core.database.engine import Store
from uam.core.errors import NotFound, StateError
from uam.features.users.auth import hash_password
from uam.features.users.models import User, UserPatch
from uam.features.users.schemas import UserCreate, UserUpdate
from uam.utils import get_logger


log = get_logger(__name__)


def _dedupe(ids: list[str]) -> list[str]:
    return list(dict.fromkeys(ids))


def list_users(store: Store) -> list[User]:
    with store.read():
        return list(store.users.values())


def get_user(store: Store, user_id: str) -> User:
    with store.read():
        user = store.users.get(user_id)
    if user is None:
        raise NotFound("User", user_id)
    return user


def get_user_by_username(store: Store, username: str) -> Optional[User]:
    with store.read():
        return next((u for u in store.users.values() if u.username == username), None)


def get_user_by_email(store: Store, email: str) -> Optional[User]:
    email = email.lower()
    with store.read():
        return next((u for u in store.users.values() if u.email.lower() == email), None)


def get_user_by_login(store: Store, login: str) -> Optional[User]:
    """Look up by username first, then by email."""
    login = login.strip()
    return get_user_by_username(store, login) or get_user_by_email(store, login)


def create_user(store: Store, data: UserCreate) -> User:
    """
    Create a user.

    Raises:
        Conflict: username or email already taken
        ValidationError: a group id does not exist
    """
    password_hash = hash_password(data.password)
    groups = _dedupe(data.groups)

    with store.transaction():
        index.ensure_username_unique(store, data.username)
        index.ensure_email_unique(store, data.email)
        index.ensure_group_ids(store, groups)

        user = User(
            username=data.username,
            email=data.email,
            first_name=data.first_name,
            last_name=data.last_name,
            password_hash=password_hash,
            role=data.role,
            groups=groups,
        )
        store.users[user.id] = user

    log.info(f"Created user {user.id} ({user.username})")
    return user


def update_user(store: Store, user_id: str, data: UserUpdate) -> User:
    """
    Apply the fields set on ``data`` to a user.

    Uniqueness checks exclude the user being updated, so re-submitting the
    current username or email is allowed.
    """
    changes = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}

    password = changes.pop("password", None)
    if password is not None:
        changes["password_hash"] = hash_password(password)
    if "groups" in changes:
        changes["groups"] = _dedupe(changes["groups"])

    with store.transaction():
        user = store.users.get(user_id)
        if user is None:
            raise NotFound("User", user_id)

        if "username" in changes:
            index.ensure_username_unique(store, changes["username"], exclude_id=user_id)
        if "email" in changes:
            index.ensure_email_unique(store, changes["email"], exclude_id=user_id)
        if "groups" in changes:
            index.ensure_group_ids(store, changes["groups"])

        user = apply_patch(user, UserPatch(**changes))
        store.users[user_id] = user

    log.info(f"Updated user {user_id}: {sorted(changes)}")
    return user


def add_user_to_group(store: Store, user_id: str, group_id: str) -> User:
    """Add ``group_id`` to the user's groups. Adding an existing membership is a no-op."""
    with store.transaction():
        user = store.users.get(user_id)
        if user is None:
            raise NotFound("User", user_id)
        index.ensure_group_ids(store, [group_id])
        if group_id in user.groups:
            return user

        user = apply_patch(user, UserPatch(groups=[*user.groups, group_id]))
        store.users[user_id] = user

    log.info(f"Added user {user_id} to group {group_id}")
    return user


def delete_user(store: Store, user_id: str, *, actor_id: Optional[str] = None) -> None:
    """
    Delete a user. Access requests that reference the user are kept.

    Raises:
        StateError: ``actor_id`` is the user being deleted
    """
    if actor_id is not None and actor_id == user_id:
        raise StateError("Cannot delete your own account")

    with store.transaction():
        if store.users.pop(user_id, None) is None:
            raise NotFound("User", user_id)

    log.info(f"Deleted user {user_id}")

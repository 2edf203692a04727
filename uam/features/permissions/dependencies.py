"""
Permission resolution and FastAPI dependencies for route protection.

Resolution walks user -> groups -> policies -> permissions:
1. An unknown user id is an authentication failure, not a denial
2. role == admin allows unconditionally
3. Otherwise allow iff some policy reachable through the user's groups holds
   a permission whose (resource, action) equals the required pair exactly
"""
from typing import Annotated, Iterator

from fastapi import Depends

from uam.core.database.engine import Store, get_store
from uam.core.errors import Forbidden, Unauthenticated
from uam.features.policies.models import Permission, Policy
from uam.features.users.dependencies import Identity, get_token_identity
from uam.features.users.models import Role, User
from uam.utils import get_logger


log = get_logger(__name__)


# ============================================================================
# Permission Checking Functions
# ============================================================================

def is_admin(user: User) -> bool:
    """Admins bypass group and policy lookup entirely."""
    return user.role == Role.ADMIN


def collect_policies(store: Store, user: User) -> Iterator[Policy]:
    """
    Yield each policy reachable through the user's groups once.

    Dangling group or policy ids are skipped. Call with the store lock held.
    """
    seen: set[str] = set()
    for group_id in user.groups:
        group = store.groups.get(group_id)
        if group is None:
            continue
        for policy_id in group.policies:
            if policy_id in seen:
                continue
            seen.add(policy_id)
            policy = store.policies.get(policy_id)
            if policy is not None:
                yield policy


def effective_permissions(store: Store, user: User) -> list[Permission]:
    """
    Get the deduplicated permissions a user holds through group membership.

    Admins are not expanded; check ``is_admin`` first.
    """
    permissions: dict[tuple[str, str], Permission] = {}
    with store.read():
        for policy in collect_policies(store, user):
            for permission in policy.permissions:
                permissions.setdefault((permission.resource, permission.action), permission)
    return list(permissions.values())


def has_permission(store: Store, user: User, resource: str, action: str) -> bool:
    """
    Check if ``user`` may perform ``action`` on ``resource``.

    Matching is exact string equality; no wildcards, no case-folding.
    """
    if is_admin(user):
        log.debug(f"User {user.id} is admin - granted permission {action} on {resource}")
        return True

    with store.read():
        for policy in collect_policies(store, user):
            for permission in policy.permissions:
                if permission.resource == resource and permission.action == action:
                    log.debug(
                        f"User {user.id} granted permission {action} on {resource} "
                        f"via policy {policy.id}"
                    )
                    return True

    log.debug(f"User {user.id} denied permission {action} on {resource}")
    return False


def authorize(store: Store, user_id: str, required: Permission) -> bool:
    """
    Decide whether ``user_id`` holds ``required``.

    Read-only. An unknown user denies here; use ``ensure_authorized`` to
    tell that case apart from a plain denial.
    """
    with store.read():
        user = store.users.get(user_id)
        if user is None:
            return False
        return has_permission(store, user, required.resource, required.action)


def ensure_authorized(store: Store, user_id: str, required: Permission) -> User:
    """
    Resolve the caller and require ``required``.

    Raises:
        Unauthenticated: the user id does not resolve
        Forbidden: the user lacks the permission
    """
    with store.read():
        user = store.users.get(user_id)
        if user is None:
            raise Unauthenticated("User not found")
        if not has_permission(store, user, required.resource, required.action):
            raise Forbidden(f"Permission denied: {required.action} on {required.resource}")
    return user


# ============================================================================
# FastAPI Dependencies
# ============================================================================

def require_permission(resource: str, action: str):
    """
    FastAPI dependency to require a specific permission.

    Usage:
        @router.post("/groups")
        def create_group(
            user: User = Depends(require_permission("groups", "create"))
        ):
            # User has permission to create groups
            pass

    Returns:
        Dependency function that returns the current user if they have permission

    Raises:
        Unauthenticated: 401 if the token is missing, invalid, or its user is gone
        Forbidden: 403 if user doesn't have permission
    """
    required = Permission(resource=resource, action=action)

    def permission_dependency(
        identity: Annotated[Identity, Depends(get_token_identity)],
        store: Annotated[Store, Depends(get_store)],
    ) -> User:
        return ensure_authorized(store, identity.user_id, required)

    return permission_dependency

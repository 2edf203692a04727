"""
Permission inspection API routes.

Lets a caller see what it may do without attempting the operation.
"""
from typing import Annotated

from fastapi import APIRouter, Depends

from uam.core.database.engine import Store, get_store
from uam.features.permissions.dependencies import effective_permissions, has_permission, is_admin
from uam.features.permissions.schemas import (
    PermissionCheckRequest,
    PermissionCheckResponse,
    UserPermissionsResponse,
)
from uam.features.users.dependencies import get_current_user
from uam.features.users.models import User


router = APIRouter(tags=["permissions"])


@router.get("/me", response_model=UserPermissionsResponse)
def get_my_permissions(
    current_user: Annotated[User, Depends(get_current_user)],
    store: Annotated[Store, Depends(get_store)],
):
    """Get the caller's effective permissions."""
    admin = is_admin(current_user)
    return UserPermissionsResponse(
        user_id=current_user.id,
        is_admin=admin,
        groups=current_user.groups,
        permissions=[] if admin else effective_permissions(store, current_user),
    )


@router.post("/check", response_model=PermissionCheckResponse)
def check_permission(
    check_request: PermissionCheckRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    store: Annotated[Store, Depends(get_store)],
):
    """Check if the current user has a specific permission."""
    allowed = has_permission(store, current_user, check_request.resource, check_request.action)

    if allowed and is_admin(current_user):
        reason = "Admin role"
    elif allowed:
        reason = None
    else:
        reason = "Permission denied"
    return PermissionCheckResponse(allowed=allowed, reason=reason)

"""
Access request routes.

Users request to join a group; holders of access-requests:update approve or
deny. Approval grants the group membership.
"""
from typing import Annotated, List

from fastapi import APIRouter, Depends, status

from uam.core.database.engine import Store, get_store
from uam.features.access_requests import crud
from uam.features.access_requests.schemas import (
    AccessRequestCreate,
    AccessRequestProcess,
    AccessRequestResponse,
)
from uam.features.permissions.dependencies import require_permission
from uam.features.users.models import User


router = APIRouter(tags=["access-requests"])


@router.get("", response_model=List[AccessRequestResponse])
def list_access_requests(
    store: Annotated[Store, Depends(get_store)],
    current_user: Annotated[User, Depends(require_permission("access-requests", "read"))],
):
    """List access requests (all for admins, own for everyone else)."""
    return crud.list_access_requests(store, current_user)


@router.post("", response_model=AccessRequestResponse, status_code=status.HTTP_201_CREATED)
def create_access_request(
    request_data: AccessRequestCreate,
    store: Annotated[Store, Depends(get_store)],
    current_user: Annotated[User, Depends(require_permission("access-requests", "create"))],
):
    """Request access to a group for the current user."""
    return crud.create_access_request(
        store, current_user.id, request_data.group_id, request_data.reason
    )


@router.get("/{request_id}", response_model=AccessRequestResponse)
def get_access_request(
    request_id: str,
    store: Annotated[Store, Depends(get_store)],
    current_user: Annotated[User, Depends(require_permission("access-requests", "read"))],
):
    """Get access request by ID."""
    return crud.get_access_request(store, request_id, current_user)


@router.put("/{request_id}/process", response_model=AccessRequestResponse)
def process_access_request(
    request_id: str,
    process_data: AccessRequestProcess,
    store: Annotated[Store, Depends(get_store)],
    current_user: Annotated[User, Depends(require_permission("access-requests", "update"))],
):
    """Approve or deny a pending access request."""
    return crud.process_access_request(
        store, request_id, process_data.status, current_user.id, process_data.reason
    )


@router.delete("/{request_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_access_request(
    request_id: str,
    store: Annotated[Store, Depends(get_store)],
    current_user: Annotated[User, Depends(require_permission("access-requests", "delete"))],
):
    """Delete an access request (own requests only, unless admin)."""
    crud.delete_access_request(store, request_id, current_user)

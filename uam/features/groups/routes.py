"""
Group feature routes.
"""
from typing import Annotated, List

from fastapi import APIRouter, Depends, status

from uam.core.database.engine import Store, get_store
from uam.features.groups import crud
from uam.features.groups.schemas import GroupCreate, GroupResponse, GroupUpdate
from uam.features.permissions.dependencies import require_permission
from uam.features.users.models import User


router = APIRouter(tags=["groups"])


@router.get("", response_model=List[GroupResponse])
def list_groups(
    store: Annotated[Store, Depends(get_store)],
    current_user: Annotated[User, Depends(require_permission("groups", "read"))],
):
    """List all groups."""
    return crud.list_groups(store)


@router.post("", response_model=GroupResponse, status_code=status.HTTP_201_CREATED)
def create_group(
    group_data: GroupCreate,
    store: Annotated[Store, Depends(get_store)],
    current_user: Annotated[User, Depends(require_permission("groups", "create"))],
):
    """Create a new group."""
    return crud.create_group(store, group_data)


@router.get("/{group_id}", response_model=GroupResponse)
def get_group(
    group_id: str,
    store: Annotated[Store, Depends(get_store)],
    current_user: Annotated[User, Depends(require_permission("groups", "read"))],
):
    """Get group by ID."""
    return crud.get_group(store, group_id)


@router.put("/{group_id}", response_model=GroupResponse)
def update_group(
    group_id: str,
    update_data: GroupUpdate,
    store: Annotated[Store, Depends(get_store)],
    current_user: Annotated[User, Depends(require_permission("groups", "update"))],
):
    """Update a group."""
    return crud.update_group(store, group_id, update_data)


@router.delete("/{group_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_group(
    group_id: str,
    store: Annotated[Store, Depends(get_store)],
    current_user: Annotated[User, Depends(require_permission("groups", "delete"))],
):
    """Delete a group and remove it from its members."""
    crud.delete_group(store, group_id)

"""
Policy feature routes.
"""
from typing import Annotated, List

from fastapi import APIRouter, Depends, status

from uam.core.database.engine import Store, get_store
from uam.features.permissions.dependencies import require_permission
from uam.features.policies import crud
from uam.features.policies.schemas import PolicyCreate, PolicyResponse, PolicyUpdate
from uam.features.users.models import User


router = APIRouter(tags=["policies"])


@router.get("", response_model=List[PolicyResponse])
def list_policies(
    store: Annotated[Store, Depends(get_store)],
    current_user: Annotated[User, Depends(require_permission("policies", "read"))],
):
    """List all policies."""
    return crud.list_policies(store)


@router.post("", response_model=PolicyResponse, status_code=status.HTTP_201_CREATED)
def create_policy(
    policy_data: PolicyCreate,
    store: Annotated[Store, Depends(get_store)],
    current_user: Annotated[User, Depends(require_permission("policies", "create"))],
):
    """Create a new policy."""
    return crud.create_policy(store, policy_data)


@router.get("/{policy_id}", response_model=PolicyResponse)
def get_policy(
    policy_id: str,
    store: Annotated[Store, Depends(get_store)],
    current_user: Annotated[User, Depends(require_permission("policies", "read"))],
):
    """Get policy by ID."""
    return crud.get_policy(store, policy_id)


@router.put("/{policy_id}", response_model=PolicyResponse)
def update_policy(
    policy_id: str,
    update_data: PolicyUpdate,
    store: Annotated[Store, Depends(get_store)],
    current_user: Annotated[User, Depends(require_permission("policies", "update"))],
):
    """Update a policy. A supplied permission list replaces the current one."""
    return crud.update_policy(store, policy_id, update_data)


@router.delete("/{policy_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_policy(
    policy_id: str,
    store: Annotated[Store, Depends(get_store)],
    current_user: Annotated[User, Depends(require_permission("policies", "delete"))],
):
    """Delete a policy and detach it from every group."""
    crud.delete_policy(store, policy_id)

"""
User feature routes.
"""
from typing import Annotated, List

from fastapi import APIRouter, Depends, status

from uam.core.database.engine import Store, get_store
from uam.features.permissions.dependencies import require_permission
from uam.features.users import crud
from uam.features.users.models import User
from uam.features.users.schemas import UserCreate, UserResponse, UserUpdate


router = APIRouter(tags=["users"])


@router.get("", response_model=List[UserResponse])
def list_users(
    store: Annotated[Store, Depends(get_store)],
    current_user: Annotated[User, Depends(require_permission("users", "read"))],
):
    """List all users."""
    return crud.list_users(store)


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    user_data: UserCreate,
    store: Annotated[Store, Depends(get_store)],
    current_user: Annotated[User, Depends(require_permission("users", "create"))],
):
    """Create a new user."""
    return crud.create_user(store, user_data)


@router.get("/{user_id}", response_model=UserResponse)
def get_user(
    user_id: str,
    store: Annotated[Store, Depends(get_store)],
    current_user: Annotated[User, Depends(require_permission("users", "read"))],
):
    """Get user by ID."""
    return crud.get_user(store, user_id)


@router.put("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: str,
    update_data: UserUpdate,
    store: Annotated[Store, Depends(get_store)],
    current_user: Annotated[User, Depends(require_permission("users", "update"))],
):
    """Update user information. Only provided fields change."""
    return crud.update_user(store, user_id, update_data)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: str,
    store: Annotated[Store, Depends(get_store)],
    current_user: Annotated[User, Depends(require_permission("users", "delete"))],
):
    """Delete a user. Users cannot delete their own account."""
    crud.delete_user(store, user_id, actor_id=current_user.id)

"""
Authentication routes.
"""
from typing import Annotated

from fastapi import APIRouter, Depends

from uam.core.database.engine import Store, get_store
from uam.core.errors import Unauthenticated
from uam.features.auth.schemas import LoginRequest, LoginResponse
from uam.features.users.auth import create_access_token, verify_password
from uam.features.users.crud import get_user_by_login
from uam.features.users.dependencies import get_current_user
from uam.features.users.models import User
from uam.features.users.schemas import UserResponse
from uam.utils import get_logger


log = get_logger(__name__)
router = APIRouter(tags=["auth"])


@router.post("/login", response_model=LoginResponse)
def login(
    credentials: LoginRequest,
    store: Annotated[Store, Depends(get_store)],
):
    """Exchange a username (or email) and password for an access token."""
    user = get_user_by_login(store, credentials.username)
    if user is None or not verify_password(credentials.password, user.password_hash):
        log.info(f"Failed login for {credentials.username!r}")
        raise Unauthenticated("Invalid credentials")

    log.info(f"User {user.id} logged in")
    return LoginResponse(
        token=create_access_token(user),
        user=UserResponse.model_validate(user),
    )


@router.get("/me", response_model=UserResponse)
def get_current_user_profile(
    user: Annotated[User, Depends(get_current_user)],
):
    """Get current authenticated user's profile."""
    return user

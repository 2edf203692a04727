"""
FastAPI dependencies for authentication.
"""
from dataclasses import dataclass
from typing import Annotated, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from uam.core.database.engine import Store, get_store
from uam.core.errors import Unauthenticated
from uam.features.users.auth import verify_jwt_token
from uam.features.users.models import User


# auto_error=False: get_token_identity reports a missing header as Unauthenticated
security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Identity:
    """Caller identity as carried by a verified token."""
    user_id: str


def get_token_identity(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
) -> Identity:
    """
    Extract and verify the Bearer token.

    Only the user id is taken from the token; the role is always read from
    the stored user.
    """
    if credentials is None:
        raise Unauthenticated("No authorization header provided")

    payload = verify_jwt_token(credentials.credentials)
    user_id = payload.get("userId")
    if not user_id:
        raise Unauthenticated("Invalid token payload")

    return Identity(user_id=user_id)


def get_current_user(
    identity: Annotated[Identity, Depends(get_token_identity)],
    store: Annotated[Store, Depends(get_store)],
) -> User:
    """
    Get the current authenticated user.

    Usage:
        @router.get("/me")
        def get_me(user: User = Depends(get_current_user)):
            return user
    """
    with store.read():
        user = store.users.get(identity.user_id)
    if user is None:
        raise Unauthenticated("User not found")
    return user


def get_authorization_header(request: Request) -> str:
    """
    Extract authorization header for rate limiting.
    Used with slowapi Limiter.
    """
    auth = request.headers.get("Authorization", "")
    return auth or "anonymous"

"""
Authentication utilities: bcrypt password hashing and HS256 JWT tokens.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt

from uam.core import config
from uam.core.errors import Unauthenticated
from uam.features.users.models import User


# ============================================================================
# Password Hashing
# ============================================================================

def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain text password (at most 72 bytes once encoded)

    Returns:
        Hashed password
    """
    salt = bcrypt.gensalt(rounds=config.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a password against its hash.

    Returns:
        True if password matches, False otherwise (including for a malformed
        hash or an over-long password)
    """
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        return False


# ============================================================================
# JWT Token Management
# ============================================================================

def create_access_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed access token for ``user``.

    Claims: userId, username, role, iat, exp.
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=config.JWT_EXPIRES_MINUTES))
    payload = {
        "userId": user.id,
        "username": user.username,
        "role": user.role.value,
        "iat": now,
        "exp": expire,
    }
    return jwt.encode(payload, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)


def verify_jwt_token(token: str) -> dict:
    """
    Verify JWT token signature and expiry and return payload.

    Args:
        token: JWT token from Authorization header

    Returns:
        Decoded JWT payload containing user information

    Raises:
        Unauthenticated: If token is invalid or expired
    """
    try:
        return jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise Unauthenticated("Token has expired")
    except jwt.InvalidTokenError as e:
        raise Unauthenticated(f"Invalid token: {str(e)}")

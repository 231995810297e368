"""
Authentication Module for the CodeCrew API.

Provides:
- Password hashing (bcrypt, cost factor 10)
- Access/refresh JWT creation and verification, each with its own secret
"""

from datetime import datetime, timedelta
from passlib.context import CryptContext
from jose import JWTError, jwt

from .config import settings
from .constants import JWT_ALGORITHM, BCRYPT_ROUNDS
from .exceptions import AuthenticationError

# Password hashing configuration (bcrypt)
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=BCRYPT_ROUNDS)

# =============================================================================
# Password Hashing
# =============================================================================

def hash_password(password: str) -> str:
    """
    Hash password using bcrypt with a per-password salt.

    Args:
        password: Plain text password

    Returns:
        Bcrypt hash string
    """
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its bcrypt hash."""
    return pwd_context.verify(plain_password, hashed_password)

# =============================================================================
# JWT Token Management
# =============================================================================

def _encode(user_id: str, secret: str, lifetime: timedelta) -> str:
    to_encode = {"sub": user_id, "exp": datetime.utcnow() + lifetime}
    return jwt.encode(to_encode, secret, algorithm=JWT_ALGORITHM)


def _decode(token: str, secret: str) -> str:
    try:
        payload = jwt.decode(token, secret, algorithms=[JWT_ALGORITHM])
    except JWTError:
        raise AuthenticationError("Invalid or expired token")

    user_id = payload.get("sub")
    if not user_id:
        raise AuthenticationError("Invalid or expired token")
    return user_id


def create_access_token(user_id: str) -> str:
    """
    Create a short-lived access token carrying the user id as `sub`.

    Args:
        user_id: The user's identifier

    Returns:
        JWT token string
    """
    return _encode(user_id, settings.jwt_secret, timedelta(minutes=settings.access_token_expire_minutes))


def create_refresh_token(user_id: str) -> str:
    """Create a long-lived refresh token signed with the refresh secret."""
    return _encode(user_id, settings.jwt_refresh_secret, timedelta(days=settings.refresh_token_expire_days))


def create_token_pair(user_id: str) -> dict:
    return {
        "access_token": create_access_token(user_id),
        "refresh_token": create_refresh_token(user_id),
    }


def decode_access_token(token: str) -> str:
    """
    Decode and verify an access token.

    Returns:
        The user id stored in the token

    Raises:
        AuthenticationError: If token is invalid or expired
    """
    return _decode(token, settings.jwt_secret)


def decode_refresh_token(token: str) -> str:
    """Decode and verify a refresh token, returning the user id."""
    return _decode(token, settings.jwt_refresh_secret)

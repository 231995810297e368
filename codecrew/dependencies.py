"""
Shared FastAPI dependencies for the CodeCrew API.

Authentication dependencies resolve the Bearer access token into a DBUser:
- get_current_user: token required (401 otherwise)
- get_optional_user: anonymous on missing or bad token
- require_roles: role check on top of get_current_user (403)
"""

import logging
from typing import Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from .auth import decode_access_token
from .database import get_db
from .db_models import DBUser
from .exceptions import AuthenticationError, ForbiddenError

logger = logging.getLogger(__name__)

# auto_error disabled so missing tokens produce our own 401 body
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


# =============================================================================
# Authentication Dependencies
# =============================================================================

def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db)
) -> DBUser:
    """
    Get the authenticated user from the Bearer token.

    Raises:
        AuthenticationError: If the token is missing, invalid or expired,
            or the user no longer exists
    """
    if not token:
        raise AuthenticationError("No token provided")

    user_id = decode_access_token(token)
    user = db.query(DBUser).filter(DBUser.id == user_id).first()
    if not user:
        raise AuthenticationError("Invalid token")
    return user


def get_optional_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db)
) -> Optional[DBUser]:
    """Get the user when a valid token is supplied, otherwise None."""
    if not token:
        return None

    try:
        user_id = decode_access_token(token)
    except AuthenticationError:
        logger.debug("Ignoring invalid token on optional-auth route")
        return None
    return db.query(DBUser).filter(DBUser.id == user_id).first()


def require_roles(*roles: str):
    """
    Build a dependency that admits users holding any of `roles`.

    Usage:
        @router.get("/moderation")
        async def queue(user: DBUser = Depends(require_roles("admin", "moderator"))):
            ...
    """
    def checker(current_user: DBUser = Depends(get_current_user)) -> DBUser:
        if not current_user.has_role(*roles):
            logger.warning(f"User {current_user.id} denied: requires one of {roles}")
            raise ForbiddenError("Insufficient permissions")
        return current_user

    return checker

"""
Authentication Router for the CodeCrew API.

Endpoints:
- POST /api/auth/signup - Register with email and password
- POST /api/auth/login - Exchange credentials for a token pair
- POST /api/auth/refresh - Exchange a refresh token for a new access token
- GET /api/auth/me - Current user
- GET /api/auth/google - Initiate Google OAuth login
- GET /api/auth/google/callback - Google OAuth callback
"""

import secrets
import logging
from typing import Optional
from urllib.parse import urlencode

import httpx
from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import RedirectResponse
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..auth import create_access_token, create_token_pair, decode_refresh_token
from ..config import settings
from ..database import get_db
from ..db_models import DBUser
from ..dependencies import get_current_user
from ..exceptions import AuthenticationError, EmailAlreadyRegisteredError, InvalidCredentialsError
from ..models import (
    SignupRequest, LoginRequest, RefreshRequest, AuthResponse, AccessTokenResponse, UserMe
)
from ..rate_limits import auth_limit, api_limit
from ..redis_client import redis_client, store_oauth_state, pop_oauth_state

# Initialize logger
logger = logging.getLogger(__name__)

# Create router
router = APIRouter(
    prefix="/api/auth",
    tags=["authentication"],
    responses={401: {"description": "Unauthorized"}},
)

# =============================================================================
# Credential Endpoints
# =============================================================================

@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
@api_limit
@auth_limit
async def signup(
    request: Request,
    payload: SignupRequest,
    db: Session = Depends(get_db)
):
    """
    Register a new credential account.

    Raises:
        EmailAlreadyRegisteredError (400): If the email already has an account
    """
    if db.query(DBUser.id).filter(DBUser.email == payload.email).first():
        raise EmailAlreadyRegisteredError(payload.email)

    user = DBUser(name=payload.name, email=payload.email, roles=["user"], oauth_providers=[], interests=[])
    user.password = payload.password
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise EmailAlreadyRegisteredError(payload.email)
    db.refresh(user)

    logger.info(f"Created user: {user.id} ({user.email})")
    return {"user": user, **create_token_pair(user.id)}


@router.post("/login", response_model=AuthResponse)
@api_limit
@auth_limit
async def login(
    request: Request,
    payload: LoginRequest,
    db: Session = Depends(get_db)
):
    """
    Login with email and password.

    Security: bcrypt verification; OAuth-only accounts have no password and
    always fail here.
    """
    user = db.query(DBUser).filter(DBUser.email == payload.email).first()
    if not user or not user.check_password(payload.password):
        logger.info(f"Failed login for {payload.email}")
        raise InvalidCredentialsError()

    logger.info(f"User logged in: {user.id}")
    return {"user": user, **create_token_pair(user.id)}


@router.post("/refresh", response_model=AccessTokenResponse)
@api_limit
async def refresh(
    request: Request,
    payload: Optional[RefreshRequest] = None,
    db: Session = Depends(get_db)
):
    """Issue a new access token from a valid refresh token."""
    if payload is None or not payload.refresh_token:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Refresh token required")

    user_id = decode_refresh_token(payload.refresh_token)
    if not db.query(DBUser.id).filter(DBUser.id == user_id).first():
        raise AuthenticationError("Invalid token")

    return {"access_token": create_access_token(user_id)}


@router.get("/me", response_model=UserMe)
@api_limit
async def me(request: Request, current_user: DBUser = Depends(get_current_user)):
    return current_user

# =============================================================================
# Google OAuth
# =============================================================================

GOOGLE_AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USER_INFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"
GOOGLE_SCOPES = "openid email profile"
GOOGLE_PROVIDER = "google"


def _login_error(reason: str) -> RedirectResponse:
    return RedirectResponse(url=f"{settings.frontend_url}/login?{urlencode({'error': reason})}")


def link_or_create_google_user(db: Session, profile: dict) -> DBUser:
    """
    Resolve a Google profile to a local user.

    An account with the same email gets the Google link attached (once);
    otherwise a new password-less account is created.
    """
    google_id = str(profile["id"])
    email = profile["email"].strip().lower()

    user = db.query(DBUser).filter(DBUser.email == email).first()
    if user:
        if not user.has_oauth_provider(GOOGLE_PROVIDER, google_id):
            user.link_oauth_provider(GOOGLE_PROVIDER, google_id)
            if not user.avatar_url and profile.get("picture"):
                user.avatar_url = profile["picture"]
            db.commit()
            logger.info(f"Linked Google account to user {user.id}")
        return user

    user = DBUser(
        name=profile.get("name") or email.split("@")[0],
        email=email,
        avatar_url=profile.get("picture"),
        oauth_providers=[{"provider": GOOGLE_PROVIDER, "id": google_id}],
        roles=["user"],
        interests=[],
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"Created OAuth user: {user.id} ({GOOGLE_PROVIDER})")
    return user


@router.get("/google")
@api_limit
async def google_login(request: Request):
    """
    Initiate Google OAuth login.

    Returns:
        Redirect to Google's consent page

    Raises:
        HTTPException 503: If Google OAuth or state storage is unavailable
    """
    if not settings.google_oauth_configured:
        raise HTTPException(status_code=503, detail="Google OAuth is not configured")
    if not redis_client:
        raise HTTPException(status_code=503, detail="OAuth state storage unavailable")

    # CSRF state token
    state = secrets.token_urlsafe(32)
    store_oauth_state(redis_client, state, GOOGLE_PROVIDER)

    params = {
        "client_id": settings.google_client_id,
        "redirect_uri": settings.google_callback_url,
        "response_type": "code",
        "scope": GOOGLE_SCOPES,
        "state": state,
        "access_type": "online",
        "prompt": "select_account",
    }
    logger.info("Google OAuth login initiated")
    return RedirectResponse(url=f"{GOOGLE_AUTHORIZE_URL}?{urlencode(params)}")


@router.get("/google/callback")
@api_limit
async def google_callback(
    request: Request,
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """
    Handle the Google OAuth callback.

    Exchanges the code, fetches the profile, links or creates the account and
    redirects to the frontend with a token pair, or to the login page with
    an error reason.
    """
    if error:
        logger.warning(f"OAuth error from Google: {error}")
        return _login_error(error)

    if not code or not state:
        return _login_error("missing_params")

    if not settings.google_oauth_configured:
        return _login_error("oauth_not_configured")

    stored_provider = pop_oauth_state(redis_client, state) if redis_client else None
    if stored_provider != GOOGLE_PROVIDER:
        logger.warning("Invalid OAuth state token for Google")
        return _login_error("invalid_state")

    try:
        async with httpx.AsyncClient() as client:
            token_response = await client.post(
                GOOGLE_TOKEN_URL,
                data={
                    "client_id": settings.google_client_id,
                    "client_secret": settings.google_client_secret,
                    "code": code,
                    "redirect_uri": settings.google_callback_url,
                    "grant_type": "authorization_code",
                },
                headers={"Accept": "application/json"}
            )
            if token_response.status_code != 200:
                logger.error(f"Token exchange failed for Google: {token_response.text}")
                return _login_error("token_exchange_failed")

            access_token = token_response.json().get("access_token")
            if not access_token:
                logger.error("No access token in response from Google")
                return _login_error("no_access_token")

            user_response = await client.get(
                GOOGLE_USER_INFO_URL,
                headers={"Authorization": f"Bearer {access_token}"}
            )
            if user_response.status_code != 200:
                logger.error(f"User info fetch failed for Google: {user_response.text}")
                return _login_error("user_info_failed")

            profile = user_response.json()
    except httpx.RequestError as e:
        logger.error(f"HTTP error during Google OAuth: {e}")
        return _login_error("network_error")

    if not profile.get("email") or not profile.get("id"):
        logger.error("Google profile has no email")
        return _login_error("no_email")

    user = link_or_create_google_user(db, profile)
    tokens = create_token_pair(user.id)

    query = urlencode({"accessToken": tokens["access_token"], "refreshToken": tokens["refresh_token"]})
    return RedirectResponse(url=f"{settings.frontend_url}/auth/callback?{query}")

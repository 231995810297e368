"""
Users Router for the CodeCrew API.

Endpoints:
- GET /api/users/{user_id} - Public profile with stats
- PATCH /api/users/{user_id} - Edit own profile
- GET /api/users/{user_id}/problems - Problems posted
- GET /api/users/{user_id}/answers - Answers given
- GET /api/users/{user_id}/bookmarks - Own bookmarks only
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from ..constants import DEFAULT_USER_PAGE_SIZE, MAX_PAGE_SIZE
from ..database import get_db
from ..db_models import DBUser
from ..dependencies import get_current_user, get_optional_user
from ..models import (
    UserProfileResponse, UserProfileUpdateResponse, UserUpdate,
    ProblemListResponse, AnswerListResponse, BookmarkListResponse,
)
from ..rate_limits import api_limit
from ..user_service import UserService

router = APIRouter(
    prefix="/api/users",
    tags=["users"],
)


@router.get("/{user_id}", response_model=UserProfileResponse)
@api_limit
async def get_profile(
    request: Request,
    user_id: str,
    db: Session = Depends(get_db),
    current_user: Optional[DBUser] = Depends(get_optional_user)
):
    """Public profile (no credentials or provider links) plus contribution stats."""
    service = UserService(db)
    user = service.get_user(user_id)
    return {"user": user, "stats": service.get_stats(user_id)}


@router.patch("/{user_id}", response_model=UserProfileUpdateResponse)
@api_limit
async def update_profile(
    request: Request,
    user_id: str,
    payload: UserUpdate,
    db: Session = Depends(get_db),
    current_user: DBUser = Depends(get_current_user)
):
    user = UserService(db).update_profile(user_id, payload, current_user)
    return {"user": user}


@router.get("/{user_id}/problems", response_model=ProblemListResponse)
@api_limit
async def list_user_problems(
    request: Request,
    user_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_USER_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    db: Session = Depends(get_db)
):
    problems, pagination = UserService(db).list_problems(user_id, page, limit)
    return {"problems": problems, "pagination": pagination}


@router.get("/{user_id}/answers", response_model=AnswerListResponse)
@api_limit
async def list_user_answers(
    request: Request,
    user_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_USER_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    db: Session = Depends(get_db)
):
    """Answers newest first, each with the title of the problem it answers."""
    answers, pagination = UserService(db).list_answers(user_id, page, limit)
    return {"answers": answers, "pagination": pagination}


@router.get("/{user_id}/bookmarks", response_model=BookmarkListResponse)
@api_limit
async def list_user_bookmarks(
    request: Request,
    user_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_USER_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
    current_user: DBUser = Depends(get_current_user)
):
    bookmarks, pagination = UserService(db).list_bookmarks(user_id, page, limit, current_user)
    return {"bookmarks": bookmarks, "pagination": pagination}

"""
Admin Router for the CodeCrew API.

All endpoints require an admin or moderator; deleting requires admin.

Endpoints:
- GET /api/admin/moderation - Problems awaiting canonical review
- PATCH /api/admin/problems/{problem_id}/canonical - Set/unset canonical
- DELETE /api/admin/problems/{problem_id} - Delete with cascade (admin)
- GET /api/admin/analytics - Problem statistics
"""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from ..admin_service import AdminService
from ..database import get_db
from ..db_models import DBUser
from ..dependencies import require_roles
from ..models import (
    ModerationQueueResponse, CanonicalUpdate, CanonicalResponse, MessageResponse, AnalyticsResponse
)
from ..problem_service import ProblemService
from ..rate_limits import api_limit

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/admin",
    tags=["admin"],
    dependencies=[Depends(require_roles("admin", "moderator"))],
    responses={403: {"description": "Insufficient permissions"}},
)


@router.get("/moderation", response_model=ModerationQueueResponse)
@api_limit
async def moderation_queue(request: Request, db: Session = Depends(get_db)):
    """High-severity, popular, non-canonical problems (most upvoted first)."""
    return {"problems": AdminService(db).moderation_queue()}


@router.patch("/problems/{problem_id}/canonical", response_model=CanonicalResponse)
@api_limit
async def set_canonical(
    request: Request,
    problem_id: str,
    payload: CanonicalUpdate,
    db: Session = Depends(get_db)
):
    return AdminService(db).set_canonical(problem_id, payload.canonical)


@router.delete("/problems/{problem_id}", response_model=MessageResponse)
@api_limit
async def delete_problem(
    request: Request,
    problem_id: str,
    db: Session = Depends(get_db),
    admin: DBUser = Depends(require_roles("admin"))
):
    """Delete any problem and everything attached to it."""
    counts = ProblemService(db).delete_cascade(problem_id)
    logger.info(f"Admin {admin.id} deleted problem {problem_id}: {counts}")
    return {"message": "Problem deleted successfully"}


@router.get("/analytics", response_model=AnalyticsResponse)
@api_limit
async def analytics(request: Request, db: Session = Depends(get_db)):
    return AdminService(db).analytics()

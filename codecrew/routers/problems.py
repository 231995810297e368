"""
Problems Router for the CodeCrew API.

Endpoints:
- GET /api/problems - List with filters, sort and pagination
- GET /api/problems/major - Canonical problems grouped by severity
- GET /api/problems/class/{type}/{id} - Problems under a classification node
- POST /api/problems/vote - Toggle a vote on a problem, answer or comment
- POST /api/problems/bookmark - Toggle a bookmark on a problem or answer
- POST /api/problems/comment - Comment on a problem or answer
- GET /api/problems/{id} - Problem page (counts a view)
- POST /api/problems - Create
- PATCH /api/problems/{id} - Update (creator or admin)
- DELETE /api/problems/{id} - Delete with cascade (creator or admin)
- POST /api/problems/{id}/solve - Mark solved (creator)
- POST /api/problems/{id}/answers - Answer a problem
- POST /api/problems/{problem_id}/answers/{answer_id}/accept - Accept an answer (creator)

Fixed paths are declared before /{id} so they are not captured by it.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from ..constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, DEFAULT_MAJOR_PROBLEMS_LIMIT
from ..database import get_db
from ..db_models import DBUser
from ..dependencies import get_current_user, get_optional_user
from ..interaction_service import VoteService, BookmarkService, accept_answer
from ..models import (
    ProblemCreate, ProblemUpdate, ProblemOut, ProblemListResponse, MajorProblemsResponse,
    ProblemDetailResponse, SolveResponse, MessageResponse,
    AnswerCreate, AnswerOut, CommentCreate, CommentOut,
    VoteRequest, VoteResponse, BookmarkRequest, BookmarkResponse,
    ProblemSort, Severity, Difficulty,
)
from ..problem_service import ProblemService
from ..rate_limits import api_limit, content_limit, vote_limit

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/problems",
    tags=["problems"],
)


def _value(enum_member):
    return enum_member.value if enum_member is not None else None


# =============================================================================
# Listing
# =============================================================================

@router.get("", response_model=ProblemListResponse)
@api_limit
async def list_problems(
    request: Request,
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    domain_id: Optional[str] = Query(None, alias="domainId"),
    subdomain_id: Optional[str] = Query(None, alias="subdomainId"),
    category_id: Optional[str] = Query(None, alias="categoryId"),
    tech_stack_id: Optional[str] = Query(None, alias="techStackId"),
    language_id: Optional[str] = Query(None, alias="languageId"),
    topic_id: Optional[str] = Query(None, alias="topicId"),
    severity: Optional[Severity] = None,
    difficulty: Optional[Difficulty] = None,
    canonical: Optional[bool] = None,
    solved: Optional[bool] = None,
    search: Optional[str] = Query(None, max_length=200),
    sort: ProblemSort = ProblemSort.NEWEST,
    db: Session = Depends(get_db),
    current_user: Optional[DBUser] = Depends(get_optional_user)
):
    """
    List problems.

    Filters combine with AND. `canonical` only narrows when true; `solved`
    narrows for both true and false.
    """
    problems, pagination = ProblemService(db).list_problems(
        page=page,
        limit=limit,
        classification={
            "domain_id": domain_id,
            "subdomain_id": subdomain_id,
            "category_id": category_id,
            "tech_stack_id": tech_stack_id,
            "language_id": language_id,
            "topic_id": topic_id,
        },
        severity=_value(severity),
        difficulty=_value(difficulty),
        canonical=canonical,
        solved=solved,
        search=search,
        sort=sort,
    )
    return {"problems": problems, "pagination": pagination}


@router.get("/major", response_model=MajorProblemsResponse)
@api_limit
async def list_major_problems(
    request: Request,
    limit: int = Query(DEFAULT_MAJOR_PROBLEMS_LIMIT, ge=1, le=DEFAULT_MAJOR_PROBLEMS_LIMIT),
    db: Session = Depends(get_db),
    current_user: Optional[DBUser] = Depends(get_optional_user)
):
    return ProblemService(db).list_major_problems(limit)


@router.get("/class/{type_name}/{node_id}", response_model=ProblemListResponse)
@api_limit
async def list_problems_by_classification(
    request: Request,
    type_name: str,
    node_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    severity: Optional[Severity] = None,
    difficulty: Optional[Difficulty] = None,
    canonical: Optional[bool] = None,
    db: Session = Depends(get_db),
    current_user: Optional[DBUser] = Depends(get_optional_user)
):
    """
    Problems under one node of the classification tree.

    `type_name` is one of domain, subdomain, category, techstack, language,
    topic (400 otherwise).
    """
    problems, pagination = ProblemService(db).list_by_classification(
        type_name,
        node_id,
        page=page,
        limit=limit,
        severity=_value(severity),
        difficulty=_value(difficulty),
        canonical=canonical,
    )
    return {"problems": problems, "pagination": pagination}

# =============================================================================
# Interactions
# =============================================================================

@router.post("/vote", response_model=VoteResponse, response_model_exclude_none=True)
@api_limit
@vote_limit
async def vote(
    request: Request,
    payload: VoteRequest,
    db: Session = Depends(get_db),
    current_user: DBUser = Depends(get_current_user)
):
    """Toggle a +1/-1 vote; repeating the same value removes it."""
    return VoteService(db).cast_vote(current_user.id, payload.target_type, payload.target_id, payload.value)


@router.post("/bookmark", response_model=BookmarkResponse)
@api_limit
async def bookmark(
    request: Request,
    payload: BookmarkRequest,
    db: Session = Depends(get_db),
    current_user: DBUser = Depends(get_current_user)
):
    return BookmarkService(db).toggle_bookmark(current_user.id, payload.target_type, payload.target_id)


@router.post("/comment", response_model=CommentOut, status_code=status.HTTP_201_CREATED)
@api_limit
@content_limit
async def create_comment(
    request: Request,
    payload: CommentCreate,
    db: Session = Depends(get_db),
    current_user: DBUser = Depends(get_current_user)
):
    return ProblemService(db).create_comment(payload, current_user)

# =============================================================================
# Single Problem
# =============================================================================

@router.get("/{problem_id}", response_model=ProblemDetailResponse)
@api_limit
async def get_problem(
    request: Request,
    problem_id: str,
    db: Session = Depends(get_db),
    current_user: Optional[DBUser] = Depends(get_optional_user)
):
    """
    Problem page: the problem, its answers and all comments, plus the
    caller's own vote and bookmark state. Each call counts one view.
    """
    return ProblemService(db).get_problem_detail(problem_id, viewer=current_user)


@router.post("", response_model=ProblemOut, status_code=status.HTTP_201_CREATED)
@api_limit
@content_limit
async def create_problem(
    request: Request,
    payload: ProblemCreate,
    db: Session = Depends(get_db),
    current_user: DBUser = Depends(get_current_user)
):
    return ProblemService(db).create_problem(payload, current_user)


@router.patch("/{problem_id}", response_model=ProblemOut)
@api_limit
async def update_problem(
    request: Request,
    problem_id: str,
    payload: ProblemUpdate,
    db: Session = Depends(get_db),
    current_user: DBUser = Depends(get_current_user)
):
    return ProblemService(db).update_problem(problem_id, payload, current_user)


@router.delete("/{problem_id}", response_model=MessageResponse)
@api_limit
async def delete_problem(
    request: Request,
    problem_id: str,
    db: Session = Depends(get_db),
    current_user: DBUser = Depends(get_current_user)
):
    ProblemService(db).delete_problem(problem_id, current_user)
    return {"message": "Problem and associated data deleted successfully"}


@router.post("/{problem_id}/solve", response_model=SolveResponse)
@api_limit
async def mark_solved(
    request: Request,
    problem_id: str,
    db: Session = Depends(get_db),
    current_user: DBUser = Depends(get_current_user)
):
    problem = ProblemService(db).mark_solved(problem_id, current_user)
    return {"message": "Problem marked as solved", "problem": problem}

# =============================================================================
# Answers
# =============================================================================

@router.post("/{problem_id}/answers", response_model=AnswerOut, status_code=status.HTTP_201_CREATED)
@api_limit
@content_limit
async def create_answer(
    request: Request,
    problem_id: str,
    payload: AnswerCreate,
    db: Session = Depends(get_db),
    current_user: DBUser = Depends(get_current_user)
):
    return ProblemService(db).create_answer(problem_id, payload, current_user)


@router.post("/{problem_id}/answers/{answer_id}/accept", response_model=AnswerOut)
@api_limit
async def accept(
    request: Request,
    problem_id: str,
    answer_id: str,
    db: Session = Depends(get_db),
    current_user: DBUser = Depends(get_current_user)
):
    """Accept an answer; any previously accepted answer of the problem is unset."""
    return accept_answer(db, problem_id, answer_id, current_user)

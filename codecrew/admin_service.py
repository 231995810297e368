"""
Moderation and analytics service for admins and moderators.
"""

import logging
from typing import Any, Dict, List

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from .constants import MODERATION_UPVOTE_THRESHOLD, MODERATION_QUEUE_LIMIT
from .db_models import DBProblem
from .models import Severity
from .problem_service import ProblemService

logger = logging.getLogger(__name__)


class AdminService:
    """Moderation queue, canonical flagging and problem analytics."""

    def __init__(self, db: Session):
        self.db = db

    def moderation_queue(self) -> List[DBProblem]:
        """Popular high-severity problems that are not canonical yet."""
        return self.db.query(DBProblem).options(
            joinedload(DBProblem.creator)
        ).filter(
            DBProblem.severity.in_([Severity.CRITICAL.value, Severity.HIGH.value]),
            DBProblem.canonical.is_(False),
            DBProblem.upvotes >= MODERATION_UPVOTE_THRESHOLD,
        ).order_by(DBProblem.upvotes.desc()).limit(MODERATION_QUEUE_LIMIT).all()

    def set_canonical(self, problem_id: str, canonical: bool) -> Dict[str, Any]:
        problems = ProblemService(self.db)
        problem = problems.get_problem(problem_id)
        problem.canonical = canonical
        self.db.commit()

        logger.info(f"Problem {problem_id} canonical={canonical}")
        return {
            "message": f"Problem {'marked' if canonical else 'unmarked'} as canonical",
            "problem": problems.get_problem(problem_id),
        }

    def analytics(self) -> Dict[str, Any]:
        """
        Problem totals and per-severity / per-difficulty aggregates.

        solve_rate is a percentage (0 when there are no problems).
        """
        total = self.db.query(func.count(DBProblem.id)).scalar()
        solved = self.db.query(func.count(DBProblem.id)).filter(DBProblem.solved.is_(True)).scalar()
        canonical = self.db.query(func.count(DBProblem.id)).filter(DBProblem.canonical.is_(True)).scalar()

        severity_rows = self.db.query(
            DBProblem.severity,
            func.count(DBProblem.id),
            func.avg(DBProblem.upvotes),
            func.avg(DBProblem.view_count),
        ).group_by(DBProblem.severity).all()

        difficulty_rows = self.db.query(
            DBProblem.difficulty,
            func.count(DBProblem.id),
            func.avg(DBProblem.upvotes),
        ).group_by(DBProblem.difficulty).all()

        return {
            "total_problems": total,
            "solved_problems": solved,
            "canonical_problems": canonical,
            "solve_rate": (solved / total) * 100 if total > 0 else 0,
            "severity_stats": [
                {"id": severity, "count": count, "avg_upvotes": float(avg_up or 0), "avg_views": float(avg_views or 0)}
                for severity, count, avg_up, avg_views in severity_rows
            ],
            "difficulty_stats": [
                {"id": difficulty, "count": count, "avg_upvotes": float(avg_up or 0)}
                for difficulty, count, avg_up in difficulty_rows
            ],
        }

"""
User profile service.

Public profiles with contribution stats, self-service profile edits, and the
per-user listings of problems, answers and bookmarks.
"""

import logging
from typing import Any, Dict, List, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from .classification_service import ClassificationService
from .db_models import DBUser, DBProblem, DBAnswer, DBBookmark
from .exceptions import NotFoundError, ForbiddenError, InvalidReferenceError
from .models import UserUpdate, TargetType
from .pagination import paginate

logger = logging.getLogger(__name__)


class UserService:
    """Profiles and per-user content listings."""

    def __init__(self, db: Session):
        self.db = db

    def get_user(self, user_id: str) -> DBUser:
        user = self.db.query(DBUser).filter(DBUser.id == user_id).first()
        if not user:
            raise NotFoundError("User")
        return user

    def get_stats(self, user_id: str) -> Dict[str, int]:
        """Contribution counts; upvotes are summed over problems and answers."""
        problems_posted = self.db.query(func.count(DBProblem.id)).filter(
            DBProblem.created_by_id == user_id
        ).scalar()
        problem_upvotes = self.db.query(func.coalesce(func.sum(DBProblem.upvotes), 0)).filter(
            DBProblem.created_by_id == user_id
        ).scalar()

        answers_given = self.db.query(func.count(DBAnswer.id)).filter(
            DBAnswer.author_id == user_id
        ).scalar()
        answer_upvotes = self.db.query(func.coalesce(func.sum(DBAnswer.upvotes), 0)).filter(
            DBAnswer.author_id == user_id
        ).scalar()
        accepted_answers = self.db.query(func.count(DBAnswer.id)).filter(
            DBAnswer.author_id == user_id, DBAnswer.accepted.is_(True)
        ).scalar()

        return {
            "problems_posted": problems_posted,
            "answers_given": answers_given,
            "upvotes_received": int(problem_upvotes) + int(answer_upvotes),
            "accepted_answers": accepted_answers,
        }

    def update_profile(self, user_id: str, data: UserUpdate, current_user: DBUser) -> DBUser:
        """
        Edit your own profile.

        Raises:
            ForbiddenError: If `current_user` is not `user_id`
            InvalidReferenceError: If an interest is not an existing domain id
        """
        if current_user.id != user_id:
            raise ForbiddenError("You can only update your own profile")

        user = self.get_user(user_id)
        changes = data.model_dump(exclude_unset=True)

        if changes.get("name") is not None:
            user.name = changes["name"]
        if "bio" in changes:
            user.bio = changes["bio"]
        if "avatar_url" in changes:
            avatar_url = changes["avatar_url"]
            user.avatar_url = str(avatar_url) if avatar_url is not None else None
        if changes.get("interests") is not None:
            interests = list(dict.fromkeys(changes["interests"]))
            missing = ClassificationService(self.db).missing_domain_ids(interests)
            if missing:
                raise InvalidReferenceError(f"Unknown domain ids in interests: {', '.join(missing)}")
            user.interests = interests

        self.db.commit()
        self.db.refresh(user)

        logger.info(f"User {user_id} updated profile fields: {sorted(changes)}")
        return user

    def list_problems(self, user_id: str, page: int, limit: int) -> Tuple[List[DBProblem], Dict[str, int]]:
        query = self.db.query(DBProblem).filter(
            DBProblem.created_by_id == user_id
        ).order_by(DBProblem.created_at.desc())
        return paginate(query, page, limit, joinedload(DBProblem.creator))

    def list_answers(self, user_id: str, page: int, limit: int) -> Tuple[List[DBAnswer], Dict[str, int]]:
        query = self.db.query(DBAnswer).filter(
            DBAnswer.author_id == user_id
        ).order_by(DBAnswer.created_at.desc())
        return paginate(query, page, limit, joinedload(DBAnswer.author), joinedload(DBAnswer.problem))

    def list_bookmarks(
        self, user_id: str, page: int, limit: int, current_user: DBUser
    ) -> Tuple[List[Dict[str, Any]], Dict[str, int]]:
        """
        List a user's bookmarks with a summary of each target.

        Only the owner may list them.
        """
        if current_user.id != user_id:
            raise ForbiddenError("You can only view your own bookmarks")

        query = self.db.query(DBBookmark).filter(
            DBBookmark.user_id == user_id
        ).order_by(DBBookmark.created_at.desc())
        bookmarks, pagination = paginate(query, page, limit)

        problem_ids = [b.target_id for b in bookmarks if b.target_type == TargetType.PROBLEM.value]
        answer_ids = [b.target_id for b in bookmarks if b.target_type == TargetType.ANSWER.value]
        problems = {
            p.id: p for p in self.db.query(DBProblem).filter(DBProblem.id.in_(problem_ids)).all()
        } if problem_ids else {}
        answers = {
            a.id: a for a in self.db.query(DBAnswer).filter(DBAnswer.id.in_(answer_ids)).all()
        } if answer_ids else {}

        items = []
        for bookmark in bookmarks:
            if bookmark.target_type == TargetType.PROBLEM.value:
                target = problems.get(bookmark.target_id)
            else:
                target = answers.get(bookmark.target_id)
            items.append({
                "id": bookmark.id,
                "target_type": bookmark.target_type,
                "target_id": bookmark.target_id,
                "target": target,
                "created_at": bookmark.created_at,
            })
        return items, pagination

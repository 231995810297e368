"""
Interaction service: votes, bookmarks and answer acceptance.

Each operation runs as one transaction. Vote counters are adjusted with
SQL-side increments so concurrent voters never overwrite each other's
counts, and the unique (user, target) constraints on votes and bookmarks
turn a racing duplicate insert into a ConflictError.
"""

import logging
from typing import Any, Dict

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .db_models import DBProblem, DBAnswer, DBComment, DBVote, DBBookmark, DBUser
from .exceptions import NotFoundError, ForbiddenError, ConflictError
from .models import TargetType

logger = logging.getLogger(__name__)

# One model per polymorphic target type
TARGET_MODELS = {
    TargetType.PROBLEM.value: DBProblem,
    TargetType.ANSWER.value: DBAnswer,
    TargetType.COMMENT.value: DBComment,
}

# Comments are votable but carry no counters
COUNTED_TARGETS = {TargetType.PROBLEM.value, TargetType.ANSWER.value}


def _type_name(target_type) -> str:
    return target_type.value if isinstance(target_type, TargetType) else str(target_type)


class VoteService:
    """Toggle-style voting on problems, answers and comments."""

    def __init__(self, db: Session):
        self.db = db

    def _ensure_target(self, target_type: str, target_id: str):
        model = TARGET_MODELS[target_type]
        exists = self.db.query(model.id).filter(model.id == target_id).first()
        if not exists:
            raise NotFoundError(target_type)
        return model

    def _adjust_counter(self, target_type: str, target_id: str, value: int, delta: int) -> None:
        if target_type not in COUNTED_TARGETS:
            return
        model = TARGET_MODELS[target_type]
        column = model.upvotes if value == 1 else model.downvotes
        self.db.query(model).filter(model.id == target_id).update(
            {column: column + delta}, synchronize_session=False
        )

    def cast_vote(self, user_id: str, target_type, target_id: str, value: int) -> Dict[str, Any]:
        """
        Apply a vote with toggle semantics.

        - no existing vote: record it and bump the matching counter
        - same value again: remove it and undo the counter
        - opposite value: switch it and move one count across

        Returns:
            {"message", "voted", "value"?}

        Raises:
            NotFoundError: If the target does not exist
            ConflictError: If a concurrent request inserted the same vote first
        """
        target_type = _type_name(target_type)
        self._ensure_target(target_type, target_id)

        try:
            existing = self.db.query(DBVote).filter(
                DBVote.user_id == user_id,
                DBVote.target_type == target_type,
                DBVote.target_id == target_id,
            ).with_for_update().first()

            if existing is None:
                self.db.add(DBVote(
                    user_id=user_id, target_type=target_type, target_id=target_id, value=value
                ))
                self._adjust_counter(target_type, target_id, value, 1)
                result = {"message": "Vote recorded", "voted": True, "value": value}
            elif existing.value == value:
                self.db.delete(existing)
                self._adjust_counter(target_type, target_id, value, -1)
                result = {"message": "Vote removed", "voted": False}
            else:
                previous = existing.value
                existing.value = value
                self._adjust_counter(target_type, target_id, previous, -1)
                self._adjust_counter(target_type, target_id, value, 1)
                result = {"message": "Vote changed", "voted": True, "value": value}

            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            logger.warning(f"Concurrent vote by {user_id} on {target_type} {target_id}")
            raise ConflictError()

        logger.debug(f"{result['message']}: user={user_id} {target_type}={target_id} value={value}")
        return result


class BookmarkService:
    """Toggle bookmarks on problems and answers."""

    def __init__(self, db: Session):
        self.db = db

    def toggle_bookmark(self, user_id: str, target_type, target_id: str) -> Dict[str, Any]:
        target_type = _type_name(target_type)
        model = TARGET_MODELS[target_type]
        if not self.db.query(model.id).filter(model.id == target_id).first():
            raise NotFoundError(target_type)

        try:
            existing = self.db.query(DBBookmark).filter(
                DBBookmark.user_id == user_id,
                DBBookmark.target_type == target_type,
                DBBookmark.target_id == target_id,
            ).first()

            if existing:
                self.db.delete(existing)
                result = {"message": "Bookmark removed", "bookmarked": False}
            else:
                self.db.add(DBBookmark(user_id=user_id, target_type=target_type, target_id=target_id))
                result = {"message": "Bookmarked", "bookmarked": True}

            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError()

        return result


def accept_answer(db: Session, problem_id: str, answer_id: str, user: DBUser) -> DBAnswer:
    """
    Mark one answer as the accepted solution of its problem.

    The problem row is locked for the duration, all answers of the problem
    are unset, then the chosen one is set, so at most one answer per problem
    is ever accepted.

    Raises:
        NotFoundError: If the problem is missing, or the answer is missing
            or belongs to another problem
        ForbiddenError: If `user` did not create the problem
    """
    problem = db.query(DBProblem).filter(DBProblem.id == problem_id).with_for_update().first()
    if not problem:
        raise NotFoundError("Problem")

    if problem.created_by_id != user.id:
        db.rollback()
        raise ForbiddenError("Only the problem creator can accept answers")

    answer = db.query(DBAnswer).filter(
        DBAnswer.id == answer_id, DBAnswer.problem_id == problem_id
    ).first()
    if not answer:
        db.rollback()
        raise NotFoundError("Answer")

    db.query(DBAnswer).filter(DBAnswer.problem_id == problem_id).update(
        {DBAnswer.accepted: False}, synchronize_session=False
    )
    db.query(DBAnswer).filter(DBAnswer.id == answer_id).update(
        {DBAnswer.accepted: True}, synchronize_session=False
    )
    db.commit()
    db.refresh(answer)

    logger.info(f"Answer {answer_id} accepted for problem {problem_id}")
    return answer

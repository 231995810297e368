"""
Problem service.

Listing, detail assembly, CRUD and the delete cascade for problems, plus
creation of answers and comments attached to them.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session, joinedload

from .classification_service import problem_column_for
from .db_models import (
    DBProblem, DBAnswer, DBComment, DBVote, DBBookmark, DBUser,
    DBDomain, DBSubdomain, DBCategory, DBTechStack, DBLanguage, DBTopic,
)
from .exceptions import NotFoundError, ForbiddenError, InvalidReferenceError
from .models import (
    ProblemCreate, ProblemUpdate, AnswerCreate, CommentCreate, ProblemSort, Severity, TargetType
)
from .pagination import paginate
from .sanitization import escape_like

logger = logging.getLogger(__name__)

CLASSIFICATION_FIELDS = (
    "domain_id", "subdomain_id", "category_id", "tech_stack_id", "language_id", "topic_id",
)

# Model each classification reference must point at
CLASSIFICATION_MODELS = {
    "domain_id": DBDomain,
    "subdomain_id": DBSubdomain,
    "category_id": DBCategory,
    "tech_stack_id": DBTechStack,
    "language_id": DBLanguage,
    "topic_id": DBTopic,
}

SORT_ORDERS = {
    ProblemSort.NEWEST: (DBProblem.created_at.desc(),),
    ProblemSort.OLDEST: (DBProblem.created_at.asc(),),
    ProblemSort.POPULAR: (DBProblem.upvotes.desc(), DBProblem.created_at.desc()),
    ProblemSort.VIEWS: (DBProblem.view_count.desc(), DBProblem.created_at.desc()),
}


class ProblemService:
    """Read and write problems and the content hanging off them."""

    def __init__(self, db: Session):
        self.db = db

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def get_problem(self, problem_id: str) -> DBProblem:
        problem = self.db.query(DBProblem).options(
            joinedload(DBProblem.creator)
        ).filter(DBProblem.id == problem_id).first()
        if not problem:
            raise NotFoundError("Problem")
        return problem

    def _check_classification_refs(self, values: Dict[str, Any]) -> None:
        for field in CLASSIFICATION_FIELDS:
            ref = values.get(field)
            if ref is None:
                continue
            model = CLASSIFICATION_MODELS[field]
            if not self.db.query(model.id).filter(model.id == ref).first():
                raise InvalidReferenceError(f"Unknown {field}: {ref}")

    # -------------------------------------------------------------------------
    # Listing
    # -------------------------------------------------------------------------

    def list_problems(
        self,
        page: int,
        limit: int,
        classification: Optional[Dict[str, Optional[str]]] = None,
        severity: Optional[str] = None,
        difficulty: Optional[str] = None,
        canonical: Optional[bool] = None,
        solved: Optional[bool] = None,
        search: Optional[str] = None,
        sort: ProblemSort = ProblemSort.NEWEST,
    ) -> Tuple[List[DBProblem], Dict[str, int]]:
        """
        Filter, sort and paginate problems.

        Only `canonical=True` narrows the result; `canonical=False` is the
        same as no filter. `search` is a case-insensitive substring match on
        title and description.
        """
        query = self.db.query(DBProblem)

        for field, value in (classification or {}).items():
            if value:
                query = query.filter(getattr(DBProblem, field) == value)
        if severity:
            query = query.filter(DBProblem.severity == severity)
        if difficulty:
            query = query.filter(DBProblem.difficulty == difficulty)
        if canonical:
            query = query.filter(DBProblem.canonical.is_(True))
        if solved is not None:
            query = query.filter(DBProblem.solved.is_(solved))
        if search:
            pattern = f"%{escape_like(search.strip())}%"
            query = query.filter(or_(
                DBProblem.title.ilike(pattern, escape="\\"),
                DBProblem.description_markdown.ilike(pattern, escape="\\"),
            ))

        query = query.order_by(*SORT_ORDERS[sort])
        return paginate(query, page, limit, joinedload(DBProblem.creator))

    def list_major_problems(self, limit: int) -> Dict[str, Any]:
        """Canonical problems by popularity, also grouped by severity."""
        problems = self.db.query(DBProblem).options(
            joinedload(DBProblem.creator)
        ).filter(
            DBProblem.canonical.is_(True)
        ).order_by(
            DBProblem.upvotes.desc(), DBProblem.view_count.desc()
        ).limit(limit).all()

        grouped = {
            severity.value.lower(): [p for p in problems if p.severity == severity.value]
            for severity in Severity
        }
        return {"problems": problems, "grouped": grouped}

    def list_by_classification(
        self,
        type_name: str,
        node_id: str,
        page: int,
        limit: int,
        severity: Optional[str] = None,
        difficulty: Optional[str] = None,
        canonical: Optional[bool] = None,
    ) -> Tuple[List[DBProblem], Dict[str, int]]:
        """Problems under one classification node, canonical first then by upvotes."""
        column = problem_column_for(type_name)

        query = self.db.query(DBProblem).filter(column == node_id)
        if severity:
            query = query.filter(DBProblem.severity == severity)
        if difficulty:
            query = query.filter(DBProblem.difficulty == difficulty)
        if canonical:
            query = query.filter(DBProblem.canonical.is_(True))

        query = query.order_by(
            DBProblem.canonical.desc(), DBProblem.upvotes.desc(), DBProblem.created_at.desc()
        )
        return paginate(query, page, limit, joinedload(DBProblem.creator))

    # -------------------------------------------------------------------------
    # Detail
    # -------------------------------------------------------------------------

    def get_problem_detail(self, problem_id: str, viewer: Optional[DBUser] = None) -> Dict[str, Any]:
        """
        Assemble a problem page and count the view.

        Answers are ordered accepted first, then by upvotes. Comments cover
        the problem and every answer, oldest first.
        """
        updated = self.db.query(DBProblem).filter(DBProblem.id == problem_id).update(
            {DBProblem.view_count: DBProblem.view_count + 1}, synchronize_session=False
        )
        if not updated:
            raise NotFoundError("Problem")
        self.db.commit()

        problem = self.get_problem(problem_id)

        answers = self.db.query(DBAnswer).options(
            joinedload(DBAnswer.author)
        ).filter(
            DBAnswer.problem_id == problem_id
        ).order_by(
            DBAnswer.accepted.desc(), DBAnswer.upvotes.desc(), DBAnswer.created_at.asc()
        ).all()

        answer_ids = [answer.id for answer in answers]
        comments = self.db.query(DBComment).options(
            joinedload(DBComment.author)
        ).filter(or_(
            and_(DBComment.parent_type == TargetType.PROBLEM.value, DBComment.parent_id == problem_id),
            and_(DBComment.parent_type == TargetType.ANSWER.value, DBComment.parent_id.in_(answer_ids)),
        )).order_by(DBComment.created_at.asc()).all()

        user_vote = None
        bookmarked = False
        if viewer is not None:
            vote = self.db.query(DBVote).filter(
                DBVote.user_id == viewer.id,
                DBVote.target_type == TargetType.PROBLEM.value,
                DBVote.target_id == problem_id,
            ).first()
            user_vote = vote.value if vote else None
            bookmarked = self.db.query(DBBookmark.id).filter(
                DBBookmark.user_id == viewer.id,
                DBBookmark.target_type == TargetType.PROBLEM.value,
                DBBookmark.target_id == problem_id,
            ).first() is not None

        return {
            "problem": problem,
            "answers": answers,
            "comments": comments,
            "user_vote": user_vote,
            "bookmarked": bookmarked,
        }

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def create_problem(self, data: ProblemCreate, user: DBUser) -> DBProblem:
        """Create a problem owned by `user`; moderation flags and counters start at defaults."""
        refs = {field: getattr(data, field) for field in CLASSIFICATION_FIELDS}
        self._check_classification_refs(refs)

        problem = DBProblem(
            title=data.title,
            description_markdown=data.description_markdown,
            severity=data.severity.value,
            difficulty=data.difficulty.value,
            tags=data.tags,
            resources=[resource.model_dump(mode="json") for resource in data.resources],
            created_by_id=user.id,
            canonical=False,
            solved=False,
            view_count=0,
            upvotes=0,
            downvotes=0,
            **refs,
        )
        self.db.add(problem)
        self.db.commit()

        logger.info(f"Problem {problem.id} created by {user.id}")
        return self.get_problem(problem.id)

    def update_problem(self, problem_id: str, data: ProblemUpdate, user: DBUser) -> DBProblem:
        """
        Apply a partial update.

        Only the creator or an admin may update; `canonical` is dropped
        unless the caller is an admin.
        """
        problem = self.get_problem(problem_id)
        if problem.created_by_id != user.id and not user.is_admin:
            raise ForbiddenError("Not authorized to update this problem")

        changes = data.model_dump(exclude_unset=True, mode="json")
        if "canonical" in changes and not user.is_admin:
            changes.pop("canonical")

        # Required columns cannot be cleared
        for field in ("title", "description_markdown", "severity", "difficulty", "tags", "resources", "canonical"):
            if field in changes and changes[field] is None:
                changes.pop(field)

        self._check_classification_refs(changes)

        for field, value in changes.items():
            setattr(problem, field, value)
        self.db.commit()

        logger.info(f"Problem {problem_id} updated by {user.id}: {sorted(changes)}")
        return self.get_problem(problem_id)

    def mark_solved(self, problem_id: str, user: DBUser) -> DBProblem:
        problem = self.get_problem(problem_id)
        if problem.created_by_id != user.id:
            raise ForbiddenError("Only the creator can mark problem as solved")

        problem.solved = True
        self.db.commit()
        return self.get_problem(problem_id)

    def delete_problem(self, problem_id: str, user: DBUser) -> Dict[str, int]:
        """Delete a problem as its creator or an admin."""
        problem = self.get_problem(problem_id)
        if problem.created_by_id != user.id and not user.is_admin:
            raise ForbiddenError("Not authorized to delete this problem")
        return self.delete_cascade(problem_id)

    def delete_cascade(self, problem_id: str) -> Dict[str, int]:
        """
        Remove a problem and everything that references it, in one transaction.

        Covers answers, comments on the problem and its answers, votes on the
        problem, its answers and those comments, and bookmarks of the problem
        and its answers.

        Returns:
            Number of rows removed per table
        """
        if not self.db.query(DBProblem.id).filter(DBProblem.id == problem_id).first():
            raise NotFoundError("Problem")

        answer_ids = [
            row.id for row in self.db.query(DBAnswer.id).filter(DBAnswer.problem_id == problem_id).all()
        ]
        comment_filter = or_(
            and_(DBComment.parent_type == TargetType.PROBLEM.value, DBComment.parent_id == problem_id),
            and_(DBComment.parent_type == TargetType.ANSWER.value, DBComment.parent_id.in_(answer_ids)),
        )
        comment_ids = [row.id for row in self.db.query(DBComment.id).filter(comment_filter).all()]

        def targets(model, types_and_ids):
            return or_(*[
                and_(model.target_type == target_type, model.target_id.in_(ids))
                for target_type, ids in types_and_ids
            ])

        try:
            counts = {
                "votes": self.db.query(DBVote).filter(targets(DBVote, [
                    (TargetType.PROBLEM.value, [problem_id]),
                    (TargetType.ANSWER.value, answer_ids),
                    (TargetType.COMMENT.value, comment_ids),
                ])).delete(synchronize_session=False),
                "bookmarks": self.db.query(DBBookmark).filter(targets(DBBookmark, [
                    (TargetType.PROBLEM.value, [problem_id]),
                    (TargetType.ANSWER.value, answer_ids),
                ])).delete(synchronize_session=False),
                "comments": self.db.query(DBComment).filter(comment_filter).delete(synchronize_session=False),
                "answers": self.db.query(DBAnswer).filter(
                    DBAnswer.problem_id == problem_id
                ).delete(synchronize_session=False),
                "problems": self.db.query(DBProblem).filter(
                    DBProblem.id == problem_id
                ).delete(synchronize_session=False),
            }
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.error(f"Cascade delete of problem {problem_id} failed, rolled back")
            raise

        logger.info(f"Problem {problem_id} deleted with cascade: {counts}")
        return counts

    def create_answer(self, problem_id: str, data: AnswerCreate, user: DBUser) -> DBAnswer:
        if not self.db.query(DBProblem.id).filter(DBProblem.id == problem_id).first():
            raise NotFoundError("Problem")

        answer = DBAnswer(
            problem_id=problem_id,
            author_id=user.id,
            content_markdown=data.content_markdown,
            upvotes=0,
            downvotes=0,
            accepted=False,
        )
        self.db.add(answer)
        self.db.commit()
        self.db.refresh(answer)

        logger.info(f"Answer {answer.id} posted on problem {problem_id} by {user.id}")
        return answer

    def create_comment(self, data: CommentCreate, user: DBUser) -> DBComment:
        parent_type = data.parent_type.value
        parent_model = DBProblem if parent_type == TargetType.PROBLEM.value else DBAnswer
        if not self.db.query(parent_model.id).filter(parent_model.id == data.parent_id).first():
            raise NotFoundError(parent_type)

        comment = DBComment(
            parent_type=parent_type,
            parent_id=data.parent_id,
            author_id=user.id,
            content=data.content,
        )
        self.db.add(comment)
        self.db.commit()
        self.db.refresh(comment)
        return comment

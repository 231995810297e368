"""
SQLAlchemy database models.

Maps the CodeCrew domain onto relational tables.
Separate from Pydantic models (models.py) which handle API validation.
"""

import uuid
from datetime import datetime

from sqlalchemy import (
    Column, Integer, String, Text, DateTime, JSON, ForeignKey, Boolean, Index, UniqueConstraint
)
from sqlalchemy.orm import relationship, declarative_base

from .auth import hash_password, verify_password

Base = declarative_base()


def generate_uuid() -> str:
    return str(uuid.uuid4())


class TimestampMixin:
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


# =============================================================================
# Users
# =============================================================================

class DBUser(TimestampMixin, Base):
    """User account table.

    password_hash is only set for credential accounts; OAuth-only users carry
    provider links instead.
    """
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    avatar_url = Column(String(2048), nullable=True)
    password_hash = Column(String(255), nullable=True)
    oauth_providers = Column(JSON, nullable=False, default=list)  # [{"provider": "google", "id": "..."}]
    roles = Column(JSON, nullable=False, default=lambda: ["user"])
    bio = Column(String(500), nullable=True)
    interests = Column(JSON, nullable=False, default=list)  # Domain ids

    problems = relationship("DBProblem", back_populates="creator")
    answers = relationship("DBAnswer", back_populates="author")

    @property
    def password(self):
        raise AttributeError("password is write-only")

    @password.setter
    def password(self, raw_password: str):
        # Hash on every assignment so the stored value is never plain text
        self.password_hash = hash_password(raw_password)

    def check_password(self, raw_password: str) -> bool:
        if not self.password_hash:
            return False
        return verify_password(raw_password, self.password_hash)

    def has_role(self, *roles: str) -> bool:
        return any(role in (self.roles or []) for role in roles)

    @property
    def is_admin(self) -> bool:
        return self.has_role("admin")

    def has_oauth_provider(self, provider: str, provider_id: str) -> bool:
        return any(
            link.get("provider") == provider and link.get("id") == provider_id
            for link in (self.oauth_providers or [])
        )

    def link_oauth_provider(self, provider: str, provider_id: str) -> None:
        # Reassign so the JSON column is flagged dirty
        self.oauth_providers = [*(self.oauth_providers or []), {"provider": provider, "id": provider_id}]

    def __repr__(self):
        return f"<DBUser(id={self.id}, email='{self.email}')>"


# =============================================================================
# Classification Tree: Domain -> Subdomain -> Category -> TechStack -> Language -> Topic
# =============================================================================

class DBDomain(TimestampMixin, Base):
    __tablename__ = "domains"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(100), unique=True, nullable=False)
    slug = Column(String(100), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=True)

    subdomains = relationship("DBSubdomain", back_populates="domain")


class DBSubdomain(TimestampMixin, Base):
    __tablename__ = "subdomains"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    domain_id = Column(String(36), ForeignKey("domains.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(100), nullable=False)
    slug = Column(String(100), nullable=False)

    domain = relationship("DBDomain", back_populates="subdomains")

    __table_args__ = (
        Index('idx_subdomain_parent_slug', 'domain_id', 'slug'),
    )


class DBCategory(TimestampMixin, Base):
    __tablename__ = "categories"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    subdomain_id = Column(String(36), ForeignKey("subdomains.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(100), nullable=False)
    slug = Column(String(100), nullable=False)

    __table_args__ = (
        Index('idx_category_parent_slug', 'subdomain_id', 'slug'),
    )


class DBTechStack(TimestampMixin, Base):
    __tablename__ = "tech_stacks"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    category_id = Column(String(36), ForeignKey("categories.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(100), nullable=False)
    slug = Column(String(100), nullable=False)

    __table_args__ = (
        Index('idx_techstack_parent_slug', 'category_id', 'slug'),
    )


class DBLanguage(TimestampMixin, Base):
    __tablename__ = "languages"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    tech_stack_id = Column(String(36), ForeignKey("tech_stacks.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(100), nullable=False)
    slug = Column(String(100), nullable=False)

    __table_args__ = (
        Index('idx_language_parent_slug', 'tech_stack_id', 'slug'),
    )


class DBTopic(TimestampMixin, Base):
    __tablename__ = "topics"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    language_id = Column(String(36), ForeignKey("languages.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(100), nullable=False)
    slug = Column(String(100), nullable=False)

    __table_args__ = (
        Index('idx_topic_parent_slug', 'language_id', 'slug'),
    )


# =============================================================================
# Content
# =============================================================================

class DBProblem(TimestampMixin, Base):
    """A posted programming problem."""
    __tablename__ = "problems"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    title = Column(String(200), nullable=False)
    description_markdown = Column(Text, nullable=False)
    created_by_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)

    severity = Column(String(20), nullable=False, default="MEDIUM")  # CRITICAL, HIGH, MEDIUM, LOW
    difficulty = Column(String(20), nullable=False, default="BEGINNER")  # BEGINNER, INTERMEDIATE, ADVANCED
    canonical = Column(Boolean, nullable=False, default=False)
    solved = Column(Boolean, nullable=False, default=False)

    view_count = Column(Integer, nullable=False, default=0)
    upvotes = Column(Integer, nullable=False, default=0)
    downvotes = Column(Integer, nullable=False, default=0)

    tags = Column(JSON, nullable=False, default=list)
    resources = Column(JSON, nullable=False, default=list)  # [{"type", "url", "title"}]

    domain_id = Column(String(36), ForeignKey("domains.id", ondelete="SET NULL"), nullable=True)
    subdomain_id = Column(String(36), ForeignKey("subdomains.id", ondelete="SET NULL"), nullable=True)
    category_id = Column(String(36), ForeignKey("categories.id", ondelete="SET NULL"), nullable=True)
    tech_stack_id = Column(String(36), ForeignKey("tech_stacks.id", ondelete="SET NULL"), nullable=True)
    language_id = Column(String(36), ForeignKey("languages.id", ondelete="SET NULL"), nullable=True)
    topic_id = Column(String(36), ForeignKey("topics.id", ondelete="SET NULL"), nullable=True)

    creator = relationship("DBUser", back_populates="problems")
    answers = relationship("DBAnswer", back_populates="problem")

    __table_args__ = (
        Index('idx_problem_canonical_upvotes', 'canonical', 'upvotes'),
        Index('idx_problem_difficulty_upvotes', 'difficulty', 'upvotes'),
        Index('idx_problem_severity_created', 'severity', 'created_at'),
        Index('idx_problem_domain', 'domain_id', 'canonical'),
        Index('idx_problem_subdomain', 'subdomain_id', 'canonical'),
        Index('idx_problem_category', 'category_id', 'canonical'),
        Index('idx_problem_techstack', 'tech_stack_id', 'canonical'),
        Index('idx_problem_language', 'language_id', 'canonical'),
        Index('idx_problem_topic', 'topic_id', 'canonical'),
    )

    def __repr__(self):
        return f"<DBProblem(id={self.id}, title='{self.title[:30]}')>"


class DBAnswer(TimestampMixin, Base):
    """An answer posted against a problem."""
    __tablename__ = "answers"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    problem_id = Column(String(36), ForeignKey("problems.id", ondelete="CASCADE"), nullable=False)
    author_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    content_markdown = Column(Text, nullable=False)
    upvotes = Column(Integer, nullable=False, default=0)
    downvotes = Column(Integer, nullable=False, default=0)
    accepted = Column(Boolean, nullable=False, default=False)

    problem = relationship("DBProblem", back_populates="answers")
    author = relationship("DBUser", back_populates="answers")

    __table_args__ = (
        Index('idx_answer_problem_accepted', 'problem_id', 'accepted'),
        Index('idx_answer_problem_upvotes', 'problem_id', 'upvotes'),
    )


class DBComment(TimestampMixin, Base):
    """Comment on a problem or an answer (parent_type discriminates)."""
    __tablename__ = "comments"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    parent_type = Column(String(20), nullable=False)  # Problem, Answer
    parent_id = Column(String(36), nullable=False)
    author_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    content = Column(String(1000), nullable=False)

    author = relationship("DBUser")

    __table_args__ = (
        Index('idx_comment_parent_created', 'parent_type', 'parent_id', 'created_at'),
    )


# =============================================================================
# Interactions
# =============================================================================

class DBVote(TimestampMixin, Base):
    """One vote per user per target; value is +1 or -1."""
    __tablename__ = "votes"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    target_type = Column(String(20), nullable=False)  # Problem, Answer, Comment
    target_id = Column(String(36), nullable=False)
    value = Column(Integer, nullable=False)

    __table_args__ = (
        UniqueConstraint('user_id', 'target_type', 'target_id', name='uq_vote_user_target'),
        Index('idx_vote_target', 'target_type', 'target_id'),
    )


class DBBookmark(TimestampMixin, Base):
    """Toggleable bookmark of a problem or answer."""
    __tablename__ = "bookmarks"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    target_type = Column(String(20), nullable=False)  # Problem, Answer
    target_id = Column(String(36), nullable=False)

    __table_args__ = (
        UniqueConstraint('user_id', 'target_type', 'target_id', name='uq_bookmark_user_target'),
        Index('idx_bookmark_user_created', 'user_id', 'created_at'),
    )

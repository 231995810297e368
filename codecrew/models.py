"""Data models and schemas for the CodeCrew API.

Python attributes are snake_case; the JSON wire format is camelCase
(alias generator), and requests are accepted in either form.
"""

from enum import Enum
from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import (
    BaseModel, ConfigDict, EmailStr, Field, HttpUrl, StrictBool, field_validator
)
from pydantic.alias_generators import to_camel

from .constants import (
    MAX_TITLE_LENGTH, MAX_COMMENT_LENGTH, MAX_BIO_LENGTH, MIN_PASSWORD_LENGTH,
    MAX_NAME_LENGTH, MAX_URL_LENGTH,
)
from .sanitization import sanitize_tags


# =============================================================================
# Enums for validated parameters
# =============================================================================

class Severity(str, Enum):
    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class Difficulty(str, Enum):
    BEGINNER = "BEGINNER"
    INTERMEDIATE = "INTERMEDIATE"
    ADVANCED = "ADVANCED"


class Role(str, Enum):
    USER = "user"
    MODERATOR = "moderator"
    ADMIN = "admin"


class TargetType(str, Enum):
    """Discriminator for polymorphic vote/bookmark/comment references."""
    PROBLEM = "Problem"
    ANSWER = "Answer"
    COMMENT = "Comment"


class ResourceType(str, Enum):
    LINK = "link"
    VIDEO = "video"
    FILE = "file"


class ProblemSort(str, Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    POPULAR = "popular"
    VIEWS = "views"


class ClassificationType(str, Enum):
    DOMAIN = "domain"
    SUBDOMAIN = "subdomain"
    CATEGORY = "category"
    TECHSTACK = "techstack"
    LANGUAGE = "language"
    TOPIC = "topic"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# =============================================================================
# User / Authentication Models
# =============================================================================

class UserSummary(CamelModel):
    """Author/creator info embedded in content responses."""
    id: str
    name: str
    avatar_url: Optional[str] = None


class UserPublic(CamelModel):
    id: str
    name: str
    email: str
    avatar_url: Optional[str] = None
    roles: List[str] = []


class UserMe(UserPublic):
    bio: Optional[str] = None
    interests: List[str] = []


class SignupRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    email: EmailStr
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return v.strip().lower()


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return v.strip().lower()


class RefreshRequest(CamelModel):
    refresh_token: Optional[str] = None


class AuthResponse(CamelModel):
    user: UserPublic
    access_token: str
    refresh_token: str


class AccessTokenResponse(CamelModel):
    access_token: str


# =============================================================================
# Classification Models
# =============================================================================

class DomainOut(CamelModel):
    id: str
    name: str
    slug: str
    description: Optional[str] = None


class SubdomainOut(CamelModel):
    id: str
    domain_id: str
    name: str
    slug: str


class CategoryOut(CamelModel):
    id: str
    subdomain_id: str
    name: str
    slug: str


class TechStackOut(CamelModel):
    id: str
    category_id: str
    name: str
    slug: str


class LanguageOut(CamelModel):
    id: str
    tech_stack_id: str
    name: str
    slug: str


class TopicOut(CamelModel):
    id: str
    language_id: str
    name: str
    slug: str


class HierarchyResponse(CamelModel):
    domains: List[DomainOut]
    subdomains: List[SubdomainOut]
    categories: List[CategoryOut]
    tech_stacks: List[TechStackOut]
    languages: List[LanguageOut]
    topics: List[TopicOut]


# =============================================================================
# Problem Models
# =============================================================================

class Resource(CamelModel):
    type: ResourceType
    url: str = Field(..., min_length=1, max_length=MAX_URL_LENGTH)
    title: Optional[str] = None


class ClassificationRefs(CamelModel):
    domain_id: Optional[str] = None
    subdomain_id: Optional[str] = None
    category_id: Optional[str] = None
    tech_stack_id: Optional[str] = None
    language_id: Optional[str] = None
    topic_id: Optional[str] = None


class ProblemCreate(ClassificationRefs):
    title: str = Field(..., min_length=1, max_length=MAX_TITLE_LENGTH)
    description_markdown: str = Field(..., min_length=1)
    severity: Severity
    difficulty: Difficulty
    tags: List[str] = []
    resources: List[Resource] = []

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, v):
        return sanitize_tags(v)


class ProblemUpdate(ClassificationRefs):
    """Partial update; canonical is ignored unless the caller is an admin."""
    title: Optional[str] = Field(None, min_length=1, max_length=MAX_TITLE_LENGTH)
    description_markdown: Optional[str] = Field(None, min_length=1)
    severity: Optional[Severity] = None
    difficulty: Optional[Difficulty] = None
    tags: Optional[List[str]] = None
    resources: Optional[List[Resource]] = None
    canonical: Optional[StrictBool] = None

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, v):
        return sanitize_tags(v) if v is not None else v


class ProblemOut(ClassificationRefs):
    id: str
    title: str
    description_markdown: str
    created_by_id: str
    creator: Optional[UserSummary] = None
    severity: Severity
    difficulty: Difficulty
    canonical: bool
    solved: bool
    view_count: int
    upvotes: int
    downvotes: int
    tags: List[str] = []
    resources: List[Resource] = []
    created_at: datetime
    updated_at: datetime


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int


class ProblemListResponse(CamelModel):
    problems: List[ProblemOut]
    pagination: Pagination


class MajorProblemsResponse(CamelModel):
    problems: List[ProblemOut]
    grouped: Dict[str, List[ProblemOut]]


class SolveResponse(CamelModel):
    message: str
    problem: ProblemOut


class MessageResponse(CamelModel):
    message: str


# =============================================================================
# Answer / Comment Models
# =============================================================================

class AnswerCreate(CamelModel):
    content_markdown: str = Field(..., min_length=1)


class AnswerOut(CamelModel):
    id: str
    problem_id: str
    author_id: str
    author: Optional[UserSummary] = None
    content_markdown: str
    upvotes: int
    downvotes: int
    accepted: bool
    created_at: datetime
    updated_at: datetime


class CommentCreate(CamelModel):
    parent_type: Literal[TargetType.PROBLEM, TargetType.ANSWER]
    parent_id: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1, max_length=MAX_COMMENT_LENGTH)

    @field_validator("content", mode="before")
    @classmethod
    def strip_content(cls, v):
        return v.strip() if isinstance(v, str) else v


class CommentOut(CamelModel):
    id: str
    parent_type: TargetType
    parent_id: str
    author_id: str
    author: Optional[UserSummary] = None
    content: str
    created_at: datetime
    updated_at: datetime


class ProblemDetailResponse(CamelModel):
    problem: ProblemOut
    answers: List[AnswerOut]
    comments: List[CommentOut]
    user_vote: Optional[int] = None
    bookmarked: bool = False


# =============================================================================
# Interaction Models
# =============================================================================

class VoteRequest(CamelModel):
    target_type: TargetType
    target_id: str = Field(..., min_length=1)
    value: Literal[1, -1]


class VoteResponse(CamelModel):
    message: str
    voted: bool
    value: Optional[int] = None


class BookmarkRequest(CamelModel):
    target_type: Literal[TargetType.PROBLEM, TargetType.ANSWER]
    target_id: str = Field(..., min_length=1)


class BookmarkResponse(CamelModel):
    message: str
    bookmarked: bool


# =============================================================================
# User Profile Models
# =============================================================================

class UserProfile(CamelModel):
    id: str
    name: str
    email: str
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    roles: List[str] = []
    interests: List[str] = []
    created_at: datetime


class UserStats(CamelModel):
    problems_posted: int
    answers_given: int
    upvotes_received: int
    accepted_answers: int


class UserProfileResponse(CamelModel):
    user: UserProfile
    stats: UserStats


class UserProfileUpdateResponse(CamelModel):
    user: UserProfile


class UserUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=MAX_NAME_LENGTH)
    bio: Optional[str] = Field(None, max_length=MAX_BIO_LENGTH)
    avatar_url: Optional[HttpUrl] = None
    interests: Optional[List[str]] = None

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v


class ProblemRef(CamelModel):
    id: str
    title: str


class UserAnswerOut(AnswerOut):
    problem: Optional[ProblemRef] = None


class AnswerListResponse(CamelModel):
    answers: List[UserAnswerOut]
    pagination: Pagination


class BookmarkTarget(CamelModel):
    """Summary of a bookmarked problem or answer."""
    id: str
    title: Optional[str] = None
    description_markdown: Optional[str] = None
    content_markdown: Optional[str] = None
    created_by_id: Optional[str] = None
    severity: Optional[Severity] = None
    difficulty: Optional[Difficulty] = None
    upvotes: int = 0


class BookmarkOut(CamelModel):
    id: str
    target_type: TargetType
    target_id: str
    target: Optional[BookmarkTarget] = None
    created_at: datetime


class BookmarkListResponse(CamelModel):
    bookmarks: List[BookmarkOut]
    pagination: Pagination


# =============================================================================
# Admin Models
# =============================================================================

class CanonicalUpdate(CamelModel):
    canonical: StrictBool


class CanonicalResponse(CamelModel):
    message: str
    problem: ProblemOut


class ModerationQueueResponse(CamelModel):
    problems: List[ProblemOut]


class AnalyticsBucket(CamelModel):
    id: str
    count: int
    avg_upvotes: float
    avg_views: Optional[float] = None


class AnalyticsResponse(CamelModel):
    total_problems: int
    solved_problems: int
    canonical_problems: int
    solve_rate: float
    severity_stats: List[AnalyticsBucket]
    difficulty_stats: List[AnalyticsBucket]

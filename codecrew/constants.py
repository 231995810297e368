"""
Application Constants for the CodeCrew API.

Centralizes limits, rate-limit windows and magic numbers.

Dynamic configuration (from environment variables) lives in config.py.
"""

# =============================================================================
# Pagination
# =============================================================================

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
DEFAULT_USER_PAGE_SIZE = 10  # profile listings (problems, answers, bookmarks)
DEFAULT_MAJOR_PROBLEMS_LIMIT = 100

# =============================================================================
# Content Limits
# =============================================================================

MAX_TITLE_LENGTH = 200
MAX_COMMENT_LENGTH = 1000
MAX_BIO_LENGTH = 500
MIN_PASSWORD_LENGTH = 6
MAX_NAME_LENGTH = 100
MAX_TAG_LENGTH = 50
MAX_TAGS = 20
MAX_URL_LENGTH = 2048

# =============================================================================
# Moderation
# =============================================================================

MODERATION_UPVOTE_THRESHOLD = 10  # high-severity problems above this need review
MODERATION_QUEUE_LIMIT = 50

# =============================================================================
# Authentication
# =============================================================================

JWT_ALGORITHM = "HS256"
BCRYPT_ROUNDS = 10
OAUTH_STATE_TTL_SECONDS = 600

# =============================================================================
# Rate Limits (per client IP, shared within each group)
# =============================================================================

API_RATE_LIMIT = "100 per 15 minutes"
AUTH_RATE_LIMIT = "5 per 15 minutes"
CONTENT_RATE_LIMIT = "10 per hour"
VOTE_RATE_LIMIT = "30 per minute"

API_RATE_LIMIT_MESSAGE = "Too many requests from this IP, please try again later."
AUTH_RATE_LIMIT_MESSAGE = "Too many authentication attempts, please try again later."
CONTENT_RATE_LIMIT_MESSAGE = "Too many posts created, please try again later."
VOTE_RATE_LIMIT_MESSAGE = "Too many votes, please slow down."

"""
Rate limiting for the CodeCrew API (slowapi).

Limits are per client IP. Each group shares one counter across all the
endpoints it decorates:
- api: every /api endpoint
- auth: signup/login
- content: creating problems, answers and comments
- vote: casting votes

Routes in the auth, content and vote groups are also decorated with
`api_limit`, so they count against the general budget as well. Put the
group decorator below `api_limit`; its limit is checked first and its
message is the one returned when both are exhausted.

Every decorated endpoint must accept a `request: Request` argument.
Limiting is disabled in test mode.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from .config import settings
from .constants import (
    API_RATE_LIMIT, AUTH_RATE_LIMIT, CONTENT_RATE_LIMIT, VOTE_RATE_LIMIT,
    API_RATE_LIMIT_MESSAGE, AUTH_RATE_LIMIT_MESSAGE,
    CONTENT_RATE_LIMIT_MESSAGE, VOTE_RATE_LIMIT_MESSAGE,
)


limiter = Limiter(key_func=get_remote_address, enabled=not settings.testing)

api_limit = limiter.shared_limit(API_RATE_LIMIT, scope="api", error_message=API_RATE_LIMIT_MESSAGE)
auth_limit = limiter.shared_limit(AUTH_RATE_LIMIT, scope="auth", error_message=AUTH_RATE_LIMIT_MESSAGE)
content_limit = limiter.shared_limit(CONTENT_RATE_LIMIT, scope="content", error_message=CONTENT_RATE_LIMIT_MESSAGE)
vote_limit = limiter.shared_limit(VOTE_RATE_LIMIT, scope="vote", error_message=VOTE_RATE_LIMIT_MESSAGE)

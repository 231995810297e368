"""
API Routers for the CodeCrew API.

Each router handles a specific area, all mounted under /api:
- auth: Signup, login, token refresh, current user, Google OAuth
- classification: Domain -> ... -> Topic tree browsing
- problems: Problems, answers, comments, votes and bookmarks
- users: Profiles and per-user listings
- admin: Moderation queue, canonical flag, analytics (admin/moderator)
"""

from . import (
    auth,
    classification,
    problems,
    users,
    admin,
)

__all__ = [
    "auth",
    "classification",
    "problems",
    "users",
    "admin",
]

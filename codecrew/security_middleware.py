"""
Security Middleware for the CodeCrew API.

- Hardening headers on every response (helmet-style defaults for a JSON API)
- HTTPS enforcement behind a TLS-terminating proxy in production
"""

import logging
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)

# The API only serves JSON, so nothing may be loaded or framed from it
API_CONTENT_SECURITY_POLICY = "default-src 'none'; frame-ancestors 'none'; base-uri 'none'"

PERMISSIONS_POLICY = "geolocation=(), microphone=(), camera=(), payment=(), usb=()"


# =============================================================================
# Security Headers Middleware
# =============================================================================

class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Add security headers to all responses.

    Strict-Transport-Security is only sent in production, where the API is
    reached over HTTPS.
    """

    def __init__(self, app: ASGIApp, environment: str = "development"):
        super().__init__(app)
        self.is_production = environment == "production"

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "no-referrer"
        response.headers["Cross-Origin-Resource-Policy"] = "same-site"
        response.headers["Content-Security-Policy"] = API_CONTENT_SECURITY_POLICY
        response.headers["Permissions-Policy"] = PERMISSIONS_POLICY

        if self.is_production:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        return response


# =============================================================================
# HTTPS Redirect Middleware
# =============================================================================

class HTTPSRedirectMiddleware(BaseHTTPMiddleware):
    """
    Redirect plain HTTP requests to HTTPS in production.

    The scheme reported by a reverse proxy (X-Forwarded-Proto) takes
    precedence over the scheme of the incoming connection.
    """

    def __init__(self, app: ASGIApp, environment: str = "development"):
        super().__init__(app)
        self.is_production = environment == "production"

    async def dispatch(self, request: Request, call_next):
        if self.is_production:
            scheme = request.headers.get("x-forwarded-proto", request.url.scheme).split(",")[0].strip()
            if scheme == "http":
                https_url = request.url.replace(scheme="https")
                logger.info(f"Redirecting HTTP to HTTPS: {request.url.path}")
                return Response(status_code=301, headers={"Location": str(https_url)})

        return await call_next(request)

"""
FastAPI backend for CodeCrew.

A community Q&A API for programming problems: problems classified by a
Domain -> Subdomain -> Category -> TechStack -> Language -> Topic tree,
answers, comments, votes and bookmarks, with admin moderation.

This main file handles app initialization, error mapping and router mounting.
All endpoints are organized in the routers/ directory.
"""

import uuid
import logging
from pathlib import Path
from datetime import datetime
from contextlib import asynccontextmanager

from dotenv import load_dotenv

# Load environment variables
env_paths = [
    Path(__file__).parent.parent / '.env',
    Path(__file__).parent / '.env',
]
for env_path in env_paths:
    if env_path.exists():
        load_dotenv(env_path)
        break

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from . import __version__
from .routers import auth, classification, problems, users, admin
from .database import init_db, check_database_health
from .exceptions import CodeCrewError
from .rate_limits import limiter
from .security_middleware import SecurityHeadersMiddleware, HTTPSRedirectMiddleware
from .redis_client import redis_client
from .config import settings

# =============================================================================
# Configuration
# =============================================================================

LOG_LEVEL = settings.log_level
logging.basicConfig(level=getattr(logging, LOG_LEVEL, logging.INFO))
logger = logging.getLogger(__name__)

# =============================================================================
# Lifespan
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables on startup."""
    logger.info(f"Starting CodeCrew API {__version__} ({settings.environment})")
    init_db()

    if not redis_client:
        logger.warning("Redis unavailable: Google OAuth login will return 503")

    yield  # Application runs here

    logger.info("Application shutting down")

# =============================================================================
# FastAPI Application
# =============================================================================

app = FastAPI(
    title="CodeCrew API",
    description="Community Q&A for programming problems",
    version=__version__,
    lifespan=lifespan
)

# =============================================================================
# Error Handlers
# =============================================================================

@app.exception_handler(CodeCrewError)
async def codecrew_error_handler(request: Request, exc: CodeCrewError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Field-level validation failures as 400."""
    errors = []
    for error in exc.errors():
        # Drop the location prefix ("body", "query", "path")
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        errors.append({
            "field": ".".join(loc) or "request",
            "message": error.get("msg", "Invalid value"),
        })
    return JSONResponse(status_code=400, content={"detail": "Validation failed", "errors": errors})


async def custom_rate_limit_handler(request: Request, exc: RateLimitExceeded):
    """
    Custom handler for rate limit exceeded errors.
    Includes Retry-After header (the window length of the exceeded limit).
    """
    try:
        retry_after = exc.limit.limit.get_expiry()
    except AttributeError:
        retry_after = 60

    return JSONResponse(
        status_code=429,
        content={"detail": str(exc.detail)},
        headers={"Retry-After": str(retry_after)}
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    request_id = getattr(request.state, "request_id", "-")
    logger.error(f"Unhandled error on {request.method} {request.url.path} [{request_id}]: {exc}", exc_info=True)
    message = "Internal server error" if settings.is_production else str(exc)
    return JSONResponse(status_code=500, content={"detail": message})


# Rate limiting (disabled in test mode through the limiter itself)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, custom_rate_limit_handler)
if settings.testing:
    logger.info("Rate limiting disabled (test mode)")

# =============================================================================
# Middleware
# =============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

environment = settings.environment
logger.info(f"Running in {environment} environment")

app.add_middleware(SecurityHeadersMiddleware, environment=environment)

# Enforce HTTPS in production
if settings.is_production:
    app.add_middleware(HTTPSRedirectMiddleware, environment=environment)
    logger.info("HTTPS enforcement enabled")


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    """
    Add unique request ID to each request for tracing.
    """
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id

    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response

# =============================================================================
# Mount Routers
# =============================================================================

app.include_router(auth.router)
app.include_router(classification.router)
app.include_router(problems.router)
app.include_router(users.router)
app.include_router(admin.router)

# =============================================================================
# Health Check / Root
# =============================================================================

@app.get("/health", tags=["health"])
async def health_check():
    """
    Health check endpoint with database connectivity.
    """
    db_health = check_database_health()
    return {
        "status": "ok" if db_health.get("database_connected") else "degraded",
        "timestamp": datetime.utcnow().isoformat(),
        "environment": environment,
        "dependencies": {
            "database": db_health,
            "redis_connected": redis_client is not None,
        },
    }


@app.get("/", tags=["health"])
async def root():
    return {
        "name": "CodeCrew API",
        "version": __version__,
        "endpoints": {
            "auth": "/api/auth",
            "classification": "/api/domains",
            "hierarchy": "/api/hierarchy",
            "problems": "/api/problems",
            "users": "/api/users",
            "admin": "/api/admin",
            "health": "/health",
        },
    }

"""
Database engine and sessions for the CodeCrew API.

PostgreSQL in production (pooled connections), SQLite for local development.
Routers get a session per request through `get_db`; scripts and the health
check use `get_db_context`, which commits on success.
"""

import logging
from contextlib import contextmanager

from sqlalchemy import create_engine, event, func, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import QueuePool

from .config import settings
from .db_models import Base, DBUser, DBProblem

logger = logging.getLogger(__name__)

DATABASE_URL = settings.database_url


def is_postgres(url: str) -> bool:
    return url.startswith("postgresql")


def redact_url(url: str) -> str:
    """Drop credentials from a connection URL for logging."""
    return url.split("@")[-1] if "@" in url else url


def build_engine(url: str) -> Engine:
    """
    Create the engine for `url`.

    PostgreSQL gets a bounded QueuePool with pre-ping; SQLite connections are
    shared across threads and enforce foreign keys.
    """
    if is_postgres(url):
        return create_engine(
            url,
            poolclass=QueuePool,
            pool_size=5,
            max_overflow=10,
            pool_pre_ping=True,
            pool_recycle=3600,
        )

    sqlite_engine = create_engine(url, connect_args={"check_same_thread": False})

    @event.listens_for(sqlite_engine, "connect")
    def enable_foreign_keys(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return sqlite_engine


logger.info(f"Database: {redact_url(DATABASE_URL)}")
engine = build_engine(DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db():
    """Create any missing tables (called from the app lifespan and the seeder)."""
    try:
        Base.metadata.create_all(bind=engine)
    except Exception as e:
        logger.error(f"Failed to create tables: {e}")
        raise
    logger.info(f"Tables ready: {', '.join(sorted(Base.metadata.tables))}")


def get_db() -> Session:
    """FastAPI dependency yielding one session per request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def get_db_context():
    """
    Session for code running outside a request.

    Usage:
        with get_db_context() as db:
            admin = db.query(DBUser).filter_by(email="admin@studenthub.com").first()
    """
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def check_database_health() -> dict:
    """Connectivity probe for /health; row counts are included when the tables exist."""
    health = {"database_type": "postgresql" if is_postgres(DATABASE_URL) else "sqlite"}
    try:
        with get_db_context() as db:
            db.execute(text("SELECT 1"))
            health["database_connected"] = True
            tables = inspect(db.connection()).get_table_names()
            if DBProblem.__tablename__ in tables:
                health["users"] = db.query(func.count(DBUser.id)).scalar()
                health["problems"] = db.query(func.count(DBProblem.id)).scalar()
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        health["database_connected"] = False
        health["database_error"] = str(e)
    return health

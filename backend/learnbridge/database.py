"""
Engine, session factory and declarative Base. PostgreSQL in production, SQLite for local runs and tests.
Request handlers get one session each (get_db); nothing else is shared between requests.
"""
import logging
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, declarative_base

from learnbridge.config import settings

logger = logging.getLogger(__name__)

_is_sqlite = settings.database_url.startswith("sqlite")

engine = create_engine(
    settings.database_url,
    pool_pre_ping=not _is_sqlite,
    connect_args={"check_same_thread": False} if _is_sqlite else {},
    echo=False,
)

if _is_sqlite:
    @event.listens_for(engine, "connect")
    def _sqlite_foreign_keys(dbapi_connection, connection_record):
        # SQLite ignores ON DELETE CASCADE / SET NULL unless this is on for every connection
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def init_db():
    """Create missing tables on SQLite. PostgreSQL schemas are managed by Alembic (alembic upgrade head)."""
    if not _is_sqlite:
        return
    from learnbridge.models import module, resource, user  # noqa: F401
    Base.metadata.create_all(bind=engine)
    logger.info("SQLite schema ready (%s)", settings.database_url)


def get_db():
    """Dependency: one session per request; uncommitted work is rolled back on error."""
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

"""
SQLAlchemy engine and session. Supports PostgreSQL and SQLite (for local dev and tests).
Sync usage; every topic/response query is scoped by session_id.
"""
import logging
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, declarative_base

from feedbacker.config import settings

logger = logging.getLogger(__name__)

_is_sqlite = "sqlite" in settings.database_url
_connect_args = {"check_same_thread": False} if _is_sqlite else {}
engine = create_engine(
    settings.database_url,
    pool_pre_ping=not _is_sqlite,
    connect_args=_connect_args,
    echo=False,  # Set True for SQL logging during development
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def enable_sqlite_foreign_keys(target_engine) -> None:
    """SQLite ignores ON DELETE CASCADE unless foreign_keys is switched on per connection."""

    @event.listens_for(target_engine, "connect")
    def _set_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


if _is_sqlite:
    enable_sqlite_foreign_keys(engine)


def init_sqlite_db(bind=None):
    """When using SQLite: create tables and backfill themes.status on old dev databases. Call once at app startup."""
    bind = bind if bind is not None else engine
    if "sqlite" not in str(bind.url):
        return
    # Import all models so they register with Base before create_all
    from feedbacker.models import talk_session, theme, response  # noqa: F401
    Base.metadata.create_all(bind=bind)
    from sqlalchemy import text
    with bind.connect() as conn:
        try:
            rows = conn.execute(text("PRAGMA table_info(themes)")).fetchall()
            columns = {r[1] for r in rows}
            if rows and "status" not in columns:
                conn.execute(text("ALTER TABLE themes ADD COLUMN status VARCHAR(20) NOT NULL DEFAULT 'active'"))
                if "is_active" in columns:
                    conn.execute(text("UPDATE themes SET status = 'archived' WHERE is_active = 0"))
            conn.commit()
        except Exception as e:
            logger.warning("SQLite init: themes.status backfill failed: %s", e)
            conn.rollback()


def get_db():
    """Dependency: yield a DB session, close after request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

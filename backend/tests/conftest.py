"""
Shared fixtures: in-memory SQLite per test (partial unique index and FKs enforced), in-memory topic store.
"""
import os

# Keep the module-level engine off disk; tests bind their own engine below.
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from feedbacker.database import Base, enable_sqlite_foreign_keys
from feedbacker.services.topic_store import InMemoryTopicStore


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(eng)
    from feedbacker.models import talk_session, theme, response  # noqa: F401
    Base.metadata.create_all(bind=eng)
    try:
        yield eng
    finally:
        eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    s = session_factory()
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def memory_store():
    return InMemoryTopicStore()

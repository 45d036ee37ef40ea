"""Shared fixtures: in-memory SQLite engine, sessions and API client."""

import os

# Must be set before shortlinks.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("BASE_URL", "http://short.test")

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from shortlinks.database import Base, get_db, set_sqlite_pragma
from shortlinks.models import Link
from shortlinks.models.link import utcnow


@pytest.fixture
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    event.listen(engine, "connect", set_sqlite_pragma)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    from shortlinks.main import app

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def expire_link(session_factory):
    """Move a link's expiration into the past."""

    def _expire(code: str) -> None:
        session = session_factory()
        try:
            link = session.query(Link).filter(Link.short_code == code).one()
            link.expires_at = utcnow() - timedelta(days=1)
            session.commit()
        finally:
            session.close()

    return _expire

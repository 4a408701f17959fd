"""Pytest configuration and shared fixtures."""

import os

# Settings are cached on first use; point them at SQLite before the app is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from procurement.api.deps import get_db
from procurement.api.main import app
from procurement.db.base import Base
import procurement.db.models  # noqa: F401

from tests.factories import create_profile, create_supplier


class FrozenClock:
    """Callable clock for services that take ``now``."""

    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current += timedelta(**kwargs)
        return self.current


@pytest.fixture()
def engine():
    """In-memory SQLite engine with the full schema."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # pysqlite needs explicit BEGIN for SAVEPOINT to behave
    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture()
def db_session(engine):
    """A session bound to the test engine."""
    session = sessionmaker(bind=engine, autoflush=False)()
    yield session
    session.rollback()
    session.close()


@pytest.fixture()
def client(db_session):
    """TestClient whose requests share ``db_session``."""

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def clock():
    return FrozenClock(datetime(2025, 3, 1, 12, 0, 0))


@pytest.fixture()
def admin(db_session):
    return create_profile(db_session, email="admin@procurement.test", role="admin", full_name="Admin")


@pytest.fixture()
def approver(db_session):
    return create_profile(db_session, email="a@x.com", role="user", full_name="Approver A")


@pytest.fixture()
def other_user(db_session):
    return create_profile(db_session, email="b@y.com", role="user", full_name="User B")


@pytest.fixture()
def supplier(db_session):
    return create_supplier(db_session, name="Acme Systems", rnc="101-00001-1")


@pytest.fixture()
def supplier_user(db_session, supplier):
    return create_profile(db_session, email="sales@acme.test", role="supplier", supplier=supplier)

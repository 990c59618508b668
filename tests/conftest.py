"""
Pytest configuration and fixtures for the membership portal tests.
"""

import os

# Point the application engine at SQLite before app.database is imported
os.environ["DB_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from app.models import Base, Member, Organization, School


@pytest.fixture(scope="session")
def engine():
    """Create an in-memory SQLite engine for testing.

    A single shared connection keeps the in-memory database alive. pysqlite's
    own transaction handling is switched off so SAVEPOINTs work, and foreign
    keys are enforced so ON DELETE CASCADE behaves as on Postgres.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(engine) -> Session:
    """Provide a database session for tests.

    Each test runs in its own transaction that is rolled back after the test.
    Commits inside the code under test only release a savepoint.
    """
    connection = engine.connect()
    transaction = connection.begin()

    session = Session(
        bind=connection,
        autoflush=False,
        join_transaction_mode="create_savepoint",
    )

    yield session

    # Cleanup: rollback transaction and close
    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture
def test_client(db_session):
    """Create test client with database session override."""
    from app.database import get_db
    from app.main import app

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture
def organization(db_session):
    """Create a sample organization."""
    org = Organization(name="Sigma Kappa Delta")
    db_session.add(org)
    db_session.commit()
    return org


@pytest.fixture
def school(db_session, organization):
    """Create a sample school in the sample organization."""
    school = School(name="University of Alabama", organization_id=organization.id)
    db_session.add(school)
    db_session.commit()
    return school


@pytest.fixture
def member(db_session, school):
    """Create a sample member at the sample school."""
    member = Member(
        name="John Doe",
        school_id=school.id,
        organization_id=school.organization_id,
        submission_url="https://x/john",
    )
    db_session.add(member)
    db_session.commit()
    return member

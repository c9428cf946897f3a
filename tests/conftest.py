"""
Pytest fixtures for the test suite.

Every test gets a fresh in-memory SQLite database (StaticPool, so all sessions
and threads share one connection) with the role table seeded. Services commit
for real; isolation comes from throwing the engine away after each test.
"""
from __future__ import annotations

import os

# Must be set before staffscope.settings is first imported.
os.environ.setdefault("STAFFSCOPE_DB_URL", "sqlite://")
os.environ.setdefault("STAFFSCOPE_PASSWORD_HASH_ROUNDS", "4")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool


TEST_DB_URL = "sqlite://"


@pytest.fixture
def engine():
    """Create a fresh in-memory SQLite engine for each test."""
    eng = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    yield eng
    eng.dispose()


@pytest.fixture
def tables(engine):
    """Create all ORM tables on the test engine."""
    from staffscope.db.base import Base
    from staffscope.models import hr, security  # noqa: F401  (register tables)

    Base.metadata.create_all(bind=engine)
    return engine


@pytest.fixture
def session_factory(tables):
    return sessionmaker(bind=tables, autocommit=False, autoflush=False, class_=Session)


@pytest.fixture
def db_session(session_factory):
    """Session with the closed role set seeded."""
    from staffscope.db.init_db import seed_roles

    session = session_factory()
    seed_roles(session)
    session.commit()
    yield session
    session.close()


@pytest.fixture
def make_department(db_session):
    from staffscope.services.departments import create_department

    def _make(name: str):
        return create_department(db_session, name)

    return _make


@pytest.fixture
def make_employee(db_session):
    """
    Provision an employee through the lifecycle service.

    Returns the ProvisionedEmployee; the principal id is the email.
    """
    from staffscope.services.employees import create_employee

    counter = {"n": 0}

    def _make(first_name: str, department_id: int, role: str = "EMPLOYEE", **overrides):
        counter["n"] += 1
        draft = {
            "first_name": first_name,
            "last_name": overrides.pop("last_name", "Tester"),
            "email": overrides.pop("email", f"{first_name.lower()}{counter['n']}@example.com"),
            "job_title": overrides.pop("job_title", "Engineer"),
            "salary": overrides.pop("salary", 50000),
            "gender": overrides.pop("gender", None),
        }
        draft.update(overrides)
        return create_employee(db_session, draft, role, department_id)

    return _make


@pytest.fixture
def admin(db_session):
    """An ADMIN principal with no employee record."""
    from staffscope.db.init_db import ensure_admin

    user = ensure_admin(db_session, "root@example.com", "admin-password")
    db_session.commit()
    return user

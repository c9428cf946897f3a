"""Tests for department manager claims, including a lost-race claim."""
from __future__ import annotations

import pytest
from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session

from staffscope.db.base import Base
from staffscope.errors import ManagerAlreadyExists
from staffscope.models.security import Department, User
from staffscope.services.manager_claims import claim_manager, release_manager_if_matches


def _user(db: Session, username: str) -> User:
    user = User(username=username, password_hash="x")
    db.add(user)
    db.flush()
    return user


def test_claim_sets_manager(db_session):
    dept = Department(name="Engineering")
    db_session.add(dept)
    u1 = _user(db_session, "u1@example.com")

    claim_manager(db_session, dept, u1)
    db_session.commit()

    assert db_session.get(Department, dept.id).manager_id == u1.id


def test_second_claim_rejected_and_first_kept(db_session):
    dept = Department(name="Engineering")
    db_session.add(dept)
    u1 = _user(db_session, "u1@example.com")
    u2 = _user(db_session, "u2@example.com")
    claim_manager(db_session, dept, u1)

    with pytest.raises(ManagerAlreadyExists):
        claim_manager(db_session, dept, u2)

    assert dept.manager_id == u1.id


def test_principal_cannot_manage_two_departments(db_session):
    eng = Department(name="Engineering")
    sales = Department(name="Sales")
    db_session.add_all([eng, sales])
    u1 = _user(db_session, "u1@example.com")
    claim_manager(db_session, eng, u1)

    with pytest.raises(ManagerAlreadyExists):
        claim_manager(db_session, sales, u1)


def test_release_only_clears_matching_claim(db_session):
    dept = Department(name="Engineering")
    db_session.add(dept)
    u1 = _user(db_session, "u1@example.com")
    u2 = _user(db_session, "u2@example.com")
    claim_manager(db_session, dept, u1)

    assert release_manager_if_matches(db_session, dept, u2) is False
    assert dept.manager_id == u1.id

    assert release_manager_if_matches(db_session, dept, u1) is True
    assert dept.manager_id is None

    # Idempotent.
    assert release_manager_if_matches(db_session, dept, u1) is False


def test_concurrent_claim_loser_is_rejected(tmp_path):
    """
    Two sessions load the same manager-less department; the first commits its
    claim, the second still sees the stale row but must not overwrite it.
    """
    engine = create_engine(f"sqlite:///{tmp_path / 'race.db'}")
    Base.metadata.create_all(bind=engine)

    with Session(engine) as setup:
        dept = Department(name="Engineering")
        setup.add(dept)
        a = _user(setup, "a@example.com")
        b = _user(setup, "b@example.com")
        setup.commit()
        dept_id, a_id, b_id = dept.id, a.id, b.id

    first = Session(engine)
    second = Session(engine)
    try:
        dept_first = first.get(Department, dept_id)
        dept_second = second.get(Department, dept_id)
        assert dept_first.manager_id is None and dept_second.manager_id is None

        claim_manager(first, dept_first, first.get(User, a_id))
        first.commit()

        with pytest.raises(ManagerAlreadyExists):
            claim_manager(second, dept_second, second.get(User, b_id))
        second.rollback()
    finally:
        first.close()
        second.close()

    with Session(engine) as check:
        managers = check.scalars(select(Department.manager_id).where(Department.id == dept_id)).all()
        assert managers == [a_id]
    engine.dispose()

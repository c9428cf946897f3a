"""
Storage failures on write and read paths surface as InfrastructureError.

Tables are dropped mid-test to simulate a broken store; the error must not
carry the driver message.
"""
from __future__ import annotations

import pytest
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from staffscope.db.session import atomic, violates_constraint
from staffscope.errors import DepartmentNotFound, InfrastructureError
from staffscope.models.security import Department, User
from staffscope.security.auth import load_principal
from staffscope.security.context import UNSCOPED
from staffscope.security.decisions import Operation, is_authorized
from staffscope.security.roles import resolve_role
from staffscope.services import reports
from staffscope.services.accounts import find_principal, save_principal
from staffscope.services.departments import create_department, list_departments
from staffscope.services.employees import get_employee
from staffscope.services.search import search_employees


def _drop(db, table: str) -> None:
    db.execute(text(f"DROP TABLE {table}"))
    db.commit()


def _assert_opaque(exc_info) -> None:
    assert exc_info.value.message == "Storage operation failed"
    assert isinstance(exc_info.value.__cause__, SQLAlchemyError)
    assert "no such table" not in str(exc_info.value)
    assert "constraint" not in str(exc_info.value)


# ---- atomic() ----------------------------------------------------------------------


def test_atomic_wraps_storage_error_and_rolls_back(db_session):
    with pytest.raises(InfrastructureError) as exc_info:
        with atomic(db_session):
            db_session.add(Department(name="Kept out"))
            db_session.add(Department(name=None))

    _assert_opaque(exc_info)
    assert isinstance(exc_info.value.__cause__, IntegrityError)
    # The session is usable again and nothing was written.
    assert list_departments(db_session) == []


def test_atomic_passes_domain_errors_through(db_session):
    with pytest.raises(DepartmentNotFound):
        with atomic(db_session):
            db_session.add(Department(name="Temp"))
            db_session.flush()
            raise DepartmentNotFound("Department not found with ID: 7")

    assert list_departments(db_session) == []


def test_unrelated_integrity_error_is_not_reported_as_duplicate(db_session):
    with pytest.raises(InfrastructureError):
        with atomic(db_session):
            save_principal(db_session, User(username="nohash@example.com", password_hash=None))

    assert find_principal(db_session, "nohash@example.com") is None


def test_violates_constraint_matches_name_or_column():
    postgres = IntegrityError("INSERT", {}, Exception('duplicate key value violates unique constraint "uq_users_username"'))
    sqlite = IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed: users.username"))
    other = IntegrityError("INSERT", {}, Exception("NOT NULL constraint failed: users.password_hash"))
    markers = ("uq_users_username", "users.username")

    assert violates_constraint(postgres, *markers)
    assert violates_constraint(sqlite, *markers)
    assert not violates_constraint(other, *markers)


# ---- write paths -------------------------------------------------------------------


def test_create_department_with_broken_store(db_session):
    _drop(db_session, "departments")

    with pytest.raises(InfrastructureError) as exc_info:
        create_department(db_session, "Engineering")
    _assert_opaque(exc_info)


def test_create_employee_with_broken_store_leaves_no_principal(db_session, make_department, make_employee):
    dept = make_department("Sales")
    _drop(db_session, "employees")

    with pytest.raises(InfrastructureError) as exc_info:
        make_employee("Erin", dept.id, email="erin@example.com")

    _assert_opaque(exc_info)
    assert find_principal(db_session, "erin@example.com") is None


# ---- read paths --------------------------------------------------------------------


def test_search_and_reports_with_broken_store(db_session):
    _drop(db_session, "employees")

    with pytest.raises(InfrastructureError) as exc_info:
        search_employees(db_session, {}, UNSCOPED)
    _assert_opaque(exc_info)

    with pytest.raises(InfrastructureError):
        reports.total_employees(db_session, UNSCOPED)
    with pytest.raises(InfrastructureError):
        reports.employees_by_department(db_session, UNSCOPED)
    with pytest.raises(InfrastructureError):
        get_employee(db_session, 1)


def test_authorization_with_broken_store(db_session, admin):
    username = admin.username
    _drop(db_session, "user_roles")

    with pytest.raises(InfrastructureError) as exc_info:
        is_authorized(db_session, username, Operation.LIST_ALL)
    _assert_opaque(exc_info)

    with pytest.raises(InfrastructureError):
        resolve_role(db_session, username)
    with pytest.raises(InfrastructureError):
        load_principal(db_session, username)

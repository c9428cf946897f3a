"""
Employee lifecycle: create, update and delete as single transactions.

Every write here spans several rows (employee, its principal, and possibly
the department's manager pointer). Each runs inside `atomic()`, so a failure
at any step leaves nothing behind.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from staffscope.db.session import atomic, storage_errors, violates_constraint
from staffscope.errors import AccessDenied, DepartmentNotFound, DuplicateAccount, EmployeeNotFound, RoleNotFound
from staffscope.models.hr import Employee
from staffscope.models.security import Department, Role, User
from staffscope.schemas.hr import EmployeeDraft, EmployeePatch, coerce
from staffscope.security.ownership import department_managed_by, employee_owned_by
from staffscope.security.passwords import generate_initial_password, hash_password
from staffscope.security.roles import RoleToken
from staffscope.services.accounts import delete_principal, find_principal, save_principal
from staffscope.services.manager_claims import claim_manager, release_manager_if_matches

logger = logging.getLogger(__name__)

_DRAFT_FIELDS = set(EmployeeDraft.model_fields)


@dataclass(frozen=True)
class ProvisionedEmployee:
    """Result of create_employee; `initial_password` is shown once and never stored."""

    employee: Employee
    principal: User
    initial_password: str


def _lock_department(db: Session, department_id: int) -> Department | None:
    # FOR UPDATE where the backend supports it; SQLite ignores the clause.
    stmt = select(Department).where(Department.id == department_id).with_for_update()
    return db.scalars(stmt).first()


def _find_role(db: Session, token: RoleToken) -> Role | None:
    if token is RoleToken.UNKNOWN:
        return None
    return db.scalars(select(Role).where(Role.name == token.value)).first()


def create_employee(
    db: Session,
    draft: EmployeeDraft | Mapping[str, Any],
    role_token: RoleToken | str,
    department_id: int,
) -> ProvisionedEmployee:
    """
    Create an employee together with the principal it owns.

    Failure modes, checked in this order:
    - DuplicateAccount: a principal already exists for the draft's email.
    - RoleNotFound: the role token is not registered.
    - DepartmentNotFound: the department id is unknown.
    - ManagerAlreadyExists: role is MANAGER and the department already has one.
    """

    draft = coerce(EmployeeDraft, draft)
    token = role_token if isinstance(role_token, RoleToken) else RoleToken.parse(role_token)
    logger.info("Adding new employee: %s", draft.email)

    # Hashed before the department row is locked.
    initial_password = generate_initial_password()
    password_hash = hash_password(initial_password)

    with atomic(db):
        if find_principal(db, draft.email) is not None:
            logger.warning("User already exists with email: %s", draft.email)
            raise DuplicateAccount(f"User already exists with email: {draft.email}")

        role = _find_role(db, token)
        if role is None:
            logger.error("Role %r not found", role_token)
            raise RoleNotFound(f"Role '{role_token}' not found")

        department = _lock_department(db, department_id)
        if department is None:
            logger.error("Department not found with ID: %s", department_id)
            raise DepartmentNotFound(f"Department not found with ID: {department_id}")

        principal = User(
            username=draft.email,
            password_hash=password_hash,
            must_reset_password=True,
        )
        principal.roles.append(role)
        save_principal(db, principal)

        employee = Employee(
            **draft.model_dump(include=_DRAFT_FIELDS),
            department_id=department.id,
            user_id=principal.id,
        )
        db.add(employee)
        try:
            db.flush()
        except IntegrityError as exc:
            if violates_constraint(exc, "uq_employees_email", "employees.email"):
                raise DuplicateAccount(f"Employee already exists with email: {draft.email}") from exc
            raise

        if token is RoleToken.MANAGER:
            claim_manager(db, department, principal)

    logger.info("Saved employee with ID: %s (role=%s, department=%s)", employee.id, token.value, department_id)
    return ProvisionedEmployee(employee=employee, principal=principal, initial_password=initial_password)


@storage_errors()
def get_employee(db: Session, employee_id: int) -> Employee:
    employee = db.get(Employee, employee_id)
    if employee is None:
        logger.warning("Employee not found with ID: %s", employee_id)
        raise EmployeeNotFound(f"Employee not found with ID: {employee_id}")
    return employee


@storage_errors()
def get_own_profile(db: Session, principal_id: str) -> Employee:
    employee = employee_owned_by(db, principal_id)
    if employee is None:
        logger.warning("Profile not found for user: %s", principal_id)
        raise AccessDenied("No employee record is linked to this account")
    return employee


def update_employee(
    db: Session,
    employee_id: int,
    patch: EmployeePatch | Mapping[str, Any],
) -> Employee:
    """
    Apply the fields set in `patch`.

    Moving an employee to another department leaves any manager claim where
    it is, and the owned principal's username is never changed.
    """

    patch = coerce(EmployeePatch, patch)
    logger.info("Updating employee with ID: %s", employee_id)

    with atomic(db):
        employee = get_employee(db, employee_id)
        changes = patch.changes()

        new_department_id = changes.get("department_id")
        if new_department_id is not None and db.get(Department, new_department_id) is None:
            raise DepartmentNotFound(f"Department not found with id: {new_department_id}")

        for field, value in changes.items():
            setattr(employee, field, value)
        try:
            db.flush()
        except IntegrityError as exc:
            if violates_constraint(exc, "uq_employees_email", "employees.email"):
                raise DuplicateAccount(f"Employee already exists with email: {changes.get('email')}") from exc
            raise

    db.refresh(employee)
    return employee


def delete_employee(db: Session, employee_id: int) -> None:
    """
    Delete an employee and the principal it owns.

    If that principal manages a department the claim is released first. The
    three effects commit together.
    """

    logger.info("Deleting employee with ID: %s", employee_id)

    with atomic(db):
        employee = get_employee(db, employee_id)
        principal = db.get(User, employee.user_id)

        if principal is not None:
            managed = department_managed_by(db, principal.username)
            if managed is not None:
                release_manager_if_matches(db, managed, principal)

        db.delete(employee)
        db.flush()

        if principal is not None:
            delete_principal(db, principal.id)

    logger.info("Deleted employee %s and associated user account", employee_id)

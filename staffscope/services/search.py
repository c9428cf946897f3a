"""
Scoped employee search.

The query is built from an explicit list of optional conditions joined with
AND. Each criterion that is present adds one condition; absent criteria add
nothing. A department-restricted scope always adds its own
`department_id == scope` condition on top of whatever the caller asked for,
so a department filter can narrow visibility but never widen it.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from sqlalchemy import ColumnElement, func, select
from sqlalchemy.orm import Session

from staffscope.db.session import storage_errors
from staffscope.errors import AccessDenied
from staffscope.models.hr import Employee
from staffscope.models.security import Department
from staffscope.schemas.hr import EmployeeSearchCriteria, coerce
from staffscope.security.context import RestrictedToDepartment, Scope
from staffscope.security.decisions import Operation, is_authorized

logger = logging.getLogger(__name__)


def _present(value: str | None) -> bool:
    return value is not None and value.strip() != ""


def _name_condition(name: str) -> ColumnElement[bool]:
    # First name only; last names are not searched.
    return func.lower(Employee.first_name).contains(name.strip().lower(), autoescape=True)


def build_predicates(criteria: EmployeeSearchCriteria, scope: Scope) -> list[ColumnElement[bool]]:
    predicates: list[ColumnElement[bool]] = []

    if _present(criteria.name):
        predicates.append(_name_condition(criteria.name))
    if criteria.department_id is not None:
        predicates.append(Employee.department_id == criteria.department_id)
    if _present(criteria.job_title):
        predicates.append(Employee.job_title == criteria.job_title)
    if _present(criteria.gender):
        predicates.append(Employee.gender == criteria.gender)

    if isinstance(scope, RestrictedToDepartment):
        predicates.append(Employee.department_id == scope.department_id)

    return predicates


@storage_errors()
def search_employees(
    db: Session,
    criteria: EmployeeSearchCriteria | Mapping[str, Any],
    scope: Scope,
) -> list[Employee]:
    criteria = coerce(EmployeeSearchCriteria, criteria)

    if criteria.department_id is not None and db.get(Department, criteria.department_id) is None:
        logger.info("No department found with ID: %s; returning no rows", criteria.department_id)
        return []

    stmt = select(Employee).where(*build_predicates(criteria, scope)).order_by(Employee.id)
    return list(db.scalars(stmt).all())


def list_employees(db: Session, scope: Scope) -> list[Employee]:
    return search_employees(db, EmployeeSearchCriteria(), scope)


def search(
    db: Session,
    criteria: EmployeeSearchCriteria | Mapping[str, Any],
    principal_id: str,
) -> list[Employee]:
    """Authorize LIST_ALL for the principal, then search within the decided scope."""

    decision = is_authorized(db, principal_id, Operation.LIST_ALL)
    if not decision.allowed:
        raise AccessDenied(decision.reason)

    rows = search_employees(db, criteria, decision.scope)
    logger.info("Search by %s returned %d employees", principal_id, len(rows))
    return rows

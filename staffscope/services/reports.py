"""
Aggregate employee reports.

Every report takes the scope of a REPORT decision, so a manager only ever
sees figures for the department they manage.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import ColumnElement, Select, func, select
from sqlalchemy.orm import Session

from staffscope.db.session import storage_errors
from staffscope.models.hr import Employee
from staffscope.models.security import Department
from staffscope.security.context import RestrictedToDepartment, Scope

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReportRow:
    label: str | None
    count: int
    average_salary: float | None
    total_salary: float | None


def _scoped(stmt: Select, scope: Scope) -> Select:
    if isinstance(scope, RestrictedToDepartment):
        return stmt.where(Employee.department_id == scope.department_id)
    return stmt


def _grouped(db: Session, label: ColumnElement, scope: Scope, *, join_department: bool = False) -> list[ReportRow]:
    stmt = select(
        label.label("label"),
        func.count(Employee.id),
        func.avg(Employee.salary),
        func.sum(Employee.salary),
    ).select_from(Employee)
    if join_department:
        stmt = stmt.join(Department, Department.id == Employee.department_id)
    stmt = _scoped(stmt, scope).group_by(label).order_by(label)

    return [
        ReportRow(
            label=row_label,
            count=int(count),
            average_salary=float(avg) if avg is not None else None,
            total_salary=float(total) if total is not None else None,
        )
        for row_label, count, avg, total in db.execute(stmt).all()
    ]


@storage_errors()
def total_employees(db: Session, scope: Scope) -> int:
    logger.info("Fetching total number of employees (scope=%s)", scope)
    stmt = _scoped(select(func.count(Employee.id)), scope)
    return int(db.execute(stmt).scalar_one())


@storage_errors()
def employees_by_department(db: Session, scope: Scope) -> list[ReportRow]:
    logger.info("Generating department report (scope=%s)", scope)
    return _grouped(db, Department.name, scope, join_department=True)


@storage_errors()
def employees_by_job_title(db: Session, scope: Scope) -> list[ReportRow]:
    logger.info("Generating report: employees by job title (scope=%s)", scope)
    return _grouped(db, Employee.job_title, scope)


@storage_errors()
def employees_by_gender(db: Session, scope: Scope) -> list[ReportRow]:
    logger.info("Generating report: employees by gender (scope=%s)", scope)
    return _grouped(db, Employee.gender, scope)


@storage_errors()
def salary_by_department(db: Session, scope: Scope) -> list[ReportRow]:
    """Department totals ordered by total salary, highest first."""

    logger.info("Generating salary report by department (scope=%s)", scope)
    rows = employees_by_department(db, scope)
    return sorted(rows, key=lambda r: r.total_salary or 0.0, reverse=True)

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from staffscope.db.session import atomic, storage_errors, violates_constraint
from staffscope.errors import DepartmentNotFound, ValidationError
from staffscope.models.security import Department

logger = logging.getLogger(__name__)


@storage_errors()
def get_department(db: Session, department_id: int) -> Department:
    department = db.get(Department, department_id)
    if department is None:
        raise DepartmentNotFound(f"Department not found with ID: {department_id}")
    return department


@storage_errors()
def list_departments(db: Session) -> list[Department]:
    return list(db.scalars(select(Department).order_by(Department.id)).all())


def create_department(db: Session, name: str) -> Department:
    """Create a department with no manager."""

    name = (name or "").strip()
    if not name:
        raise ValidationError("Department name is required")

    department = Department(name=name)
    with atomic(db):
        if db.scalars(select(Department).where(Department.name == name)).first() is not None:
            raise ValidationError(f"Department {name!r} already exists")

        db.add(department)
        try:
            db.flush()
        except IntegrityError as exc:
            if violates_constraint(exc, "uq_departments_name", "departments.name"):
                raise ValidationError(f"Department {name!r} already exists") from exc
            raise

    logger.info("Created department id=%s name=%s", department.id, name)
    return department

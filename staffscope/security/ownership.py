from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from staffscope.db.session import storage_errors
from staffscope.models.hr import Employee
from staffscope.models.security import Department, User


@storage_errors()
def employee_owned_by(db: Session, principal_id: str) -> Employee | None:
    stmt = select(Employee).join(User, User.id == Employee.user_id).where(User.username == principal_id)
    return db.scalars(stmt).first()


@storage_errors()
def department_managed_by(db: Session, principal_id: str) -> Department | None:
    stmt = select(Department).join(User, User.id == Department.manager_id).where(User.username == principal_id)
    return db.scalars(stmt).first()

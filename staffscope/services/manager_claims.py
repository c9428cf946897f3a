"""
Department manager claims.

Both functions run inside the caller's transaction (see
services.employees). The writes are conditional UPDATEs, so two requests
racing to claim the same department cannot both succeed: the loser updates
zero rows. The unique constraint on departments.manager_id additionally stops
one principal from managing two departments.
"""

from __future__ import annotations

import logging

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from staffscope.db.session import violates_constraint
from staffscope.errors import ManagerAlreadyExists
from staffscope.models.security import Department, User

logger = logging.getLogger(__name__)

MANAGER_CONSTRAINT_MARKERS = ("uq_departments_manager_id", "departments.manager_id")


def claim_manager(db: Session, department: Department, principal: User) -> None:
    if department.manager_id is not None:
        logger.warning("Department %s already has manager user_id=%s", department.id, department.manager_id)
        raise ManagerAlreadyExists(f"Manager already exists for the department with ID: {department.id}")

    stmt = (
        update(Department)
        .where(Department.id == department.id, Department.manager_id.is_(None))
        .values(manager_id=principal.id)
        .execution_options(synchronize_session=False)
    )
    try:
        result = db.execute(stmt)
    except IntegrityError as exc:
        if violates_constraint(exc, *MANAGER_CONSTRAINT_MARKERS):
            raise ManagerAlreadyExists(f"Principal {principal.username} already manages a department") from exc
        raise

    if result.rowcount != 1:
        # Someone else committed a claim after we loaded the department.
        db.refresh(department)
        logger.warning("Lost manager claim race for department %s", department.id)
        raise ManagerAlreadyExists(f"Manager already exists for the department with ID: {department.id}")

    db.refresh(department)
    logger.info("Bound user_id=%s as manager of department %s", principal.id, department.id)


def release_manager_if_matches(db: Session, department: Department, principal: User) -> bool:
    """Clear the claim only if `principal` holds it. Returns True when cleared."""

    stmt = (
        update(Department)
        .where(Department.id == department.id, Department.manager_id == principal.id)
        .values(manager_id=None)
        .execution_options(synchronize_session=False)
    )
    result = db.execute(stmt)
    db.refresh(department)

    if result.rowcount:
        logger.info("Released manager user_id=%s from department %s", principal.id, department.id)
        return True
    return False

"""
Per-operation access decisions.

`decide()` is pure: it receives the operative role and the ownership facts and
returns Allow(scope) or Deny. `is_authorized()` gathers those facts for one
principal from a single session and delegates to `decide()`.

Rules:
    READ_OWN_PROFILE  allowed iff the principal owns an employee record.
    READ_BY_ID        ADMIN always; MANAGER iff the target is in the managed
                      department; anyone else iff the target is their own record.
    LIST_ALL, REPORT  ADMIN unscoped; MANAGER restricted to the managed
                      department; everyone else denied.
    CREATE, UPDATE,
    DELETE            ADMIN only.
"""

from __future__ import annotations

import enum
import logging

from sqlalchemy.orm import Session

from staffscope.db.session import storage_errors
from staffscope.models.hr import Employee
from staffscope.models.security import Department
from staffscope.security.context import UNSCOPED, Allow, Decision, Deny, RestrictedToDepartment
from staffscope.security.ownership import department_managed_by, employee_owned_by
from staffscope.security.roles import RoleToken, resolve_role

logger = logging.getLogger(__name__)


class Operation(str, enum.Enum):
    READ_OWN_PROFILE = "read_own_profile"
    READ_BY_ID = "read_by_id"
    LIST_ALL = "list_all"
    REPORT = "report"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"

    @property
    def is_mutation(self) -> bool:
        return self in (Operation.CREATE, Operation.UPDATE, Operation.DELETE)

    @property
    def needs_target(self) -> bool:
        return self is Operation.READ_BY_ID


def decide(
    role: RoleToken,
    operation: Operation,
    *,
    owned_employee: Employee | None = None,
    managed_department: Department | None = None,
    target_employee: Employee | None = None,
    target_id: int | None = None,
) -> Decision:
    if operation is Operation.READ_OWN_PROFILE:
        if owned_employee is None:
            return Deny("No employee record is linked to this account")
        return Allow(UNSCOPED, employee_id=owned_employee.id)

    if operation is Operation.READ_BY_ID:
        return _decide_read_by_id(role, owned_employee, managed_department, target_employee, target_id)

    if operation in (Operation.LIST_ALL, Operation.REPORT):
        if role is RoleToken.ADMIN:
            return Allow(UNSCOPED)
        if role is RoleToken.MANAGER:
            if managed_department is None:
                return Deny("Manager has no department assigned")
            return Allow(RestrictedToDepartment(managed_department.id))
        return Deny(f"Role {role.value} may not list employees")

    if operation.is_mutation:
        if role is RoleToken.ADMIN:
            return Allow(UNSCOPED)
        return Deny(f"Role {role.value} may not {operation.value} employees")

    return Deny(f"Unsupported operation {operation!r}")


def _decide_read_by_id(
    role: RoleToken,
    owned_employee: Employee | None,
    managed_department: Department | None,
    target_employee: Employee | None,
    target_id: int | None,
) -> Decision:
    if role is RoleToken.ADMIN:
        return Allow(UNSCOPED)

    if target_employee is None:
        # Non-admins never learn whether an id exists.
        return Deny("Access denied")

    if role is RoleToken.MANAGER:
        if managed_department is not None and target_employee.department_id == managed_department.id:
            return Allow(RestrictedToDepartment(managed_department.id))
        return Deny("Employee is outside the managed department")

    wanted = target_id if target_id is not None else target_employee.id
    if owned_employee is not None and owned_employee.id == wanted:
        return Allow(RestrictedToDepartment(owned_employee.department_id), employee_id=owned_employee.id)
    return Deny("Employees may only read their own record")


@storage_errors()
def is_authorized(
    db: Session,
    principal_id: str,
    operation: Operation,
    target_ref: int | None = None,
) -> Decision:
    """
    Decide whether `principal_id` may perform `operation` on `target_ref`.

    Raises PrincipalNotFound for unregistered principals. Role, ownership and
    target are read through the same session so one decision sees one
    consistent view of the principal.
    """

    role = resolve_role(db, principal_id)
    owned = employee_owned_by(db, principal_id)
    managed = department_managed_by(db, principal_id) if role is RoleToken.MANAGER else None

    target = None
    if operation.needs_target and target_ref is not None:
        target = db.get(Employee, target_ref)

    decision = decide(
        role,
        operation,
        owned_employee=owned,
        managed_department=managed,
        target_employee=target,
        target_id=target_ref,
    )

    if decision.allowed:
        logger.debug(
            "Authz: allowed principal=%s role=%s op=%s target=%s scope=%s",
            principal_id,
            role.value,
            operation.value,
            target_ref,
            decision.scope,
        )
    else:
        logger.info(
            "Authz: denied principal=%s role=%s op=%s target=%s reason=%s",
            principal_id,
            role.value,
            operation.value,
            target_ref,
            decision.reason,
        )
    return decision

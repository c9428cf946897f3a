from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from staffscope.db.session import get_db
from staffscope.models.hr import Employee
from staffscope.schemas.hr import (
    EmployeeCreateRequest,
    EmployeeOut,
    EmployeePatch,
    EmployeeSearchCriteria,
    ProvisionedEmployeeOut,
)
from staffscope.security.context import Allow, PrincipalContext
from staffscope.security.dependencies import get_current_principal, get_decision
from staffscope.services import employees as employee_service
from staffscope.services.search import list_employees, search_employees

router = APIRouter(tags=["employees"])

# Route guards (operation kinds) live in config/access_config.yaml.


@router.get("/me", response_model=EmployeeOut)
def me(
    principal: PrincipalContext = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> Employee:
    return employee_service.get_own_profile(db, principal.principal_id)


@router.get("/employees", response_model=list[EmployeeOut])
def get_employees(
    decision: Allow = Depends(get_decision),
    db: Session = Depends(get_db),
) -> list[Employee]:
    return list_employees(db, decision.scope)


@router.post("/employees/search", response_model=list[EmployeeOut])
def search(
    criteria: EmployeeSearchCriteria,
    decision: Allow = Depends(get_decision),
    db: Session = Depends(get_db),
) -> list[Employee]:
    return search_employees(db, criteria, decision.scope)


@router.get("/employees/{id}", response_model=EmployeeOut)
def get_employee(id: int, db: Session = Depends(get_db)) -> Employee:
    return employee_service.get_employee(db, id)


@router.post("/employees", response_model=ProvisionedEmployeeOut, status_code=status.HTTP_201_CREATED)
def add_employee(request: EmployeeCreateRequest, db: Session = Depends(get_db)) -> ProvisionedEmployeeOut:
    provisioned = employee_service.create_employee(db, request, request.role, request.department_id)
    return ProvisionedEmployeeOut(
        employee=EmployeeOut.model_validate(provisioned.employee),
        username=provisioned.principal.username,
        initial_password=provisioned.initial_password,
    )


@router.put("/employees/{id}", response_model=EmployeeOut)
def update_employee(id: int, patch: EmployeePatch, db: Session = Depends(get_db)) -> Employee:
    return employee_service.update_employee(db, id, patch)


@router.delete("/employees/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_employee(id: int, db: Session = Depends(get_db)) -> Response:
    employee_service.delete_employee(db, id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

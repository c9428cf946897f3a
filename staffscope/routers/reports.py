from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from staffscope.db.session import get_db
from staffscope.schemas.hr import ReportRowOut
from staffscope.security.context import Allow
from staffscope.security.decisions import Operation
from staffscope.security.decorators import guarded
from staffscope.security.dependencies import get_decision
from staffscope.services import reports
from staffscope.services.reports import ReportRow

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("/total-employees", response_model=int)
@guarded(Operation.REPORT)
def total_employees(decision: Allow = Depends(get_decision), db: Session = Depends(get_db)) -> int:
    return reports.total_employees(db, decision.scope)


@router.get("/employees-by-department", response_model=list[ReportRowOut])
@guarded(Operation.REPORT)
def employees_by_department(decision: Allow = Depends(get_decision), db: Session = Depends(get_db)) -> list[ReportRow]:
    return reports.employees_by_department(db, decision.scope)


@router.get("/employees-by-job-title", response_model=list[ReportRowOut])
@guarded(Operation.REPORT)
def employees_by_job_title(decision: Allow = Depends(get_decision), db: Session = Depends(get_db)) -> list[ReportRow]:
    return reports.employees_by_job_title(db, decision.scope)


@router.get("/employees-by-gender", response_model=list[ReportRowOut])
@guarded(Operation.REPORT)
def employees_by_gender(decision: Allow = Depends(get_decision), db: Session = Depends(get_db)) -> list[ReportRow]:
    return reports.employees_by_gender(db, decision.scope)


@router.get("/total-salary-by-department", response_model=list[ReportRowOut])
@guarded(Operation.REPORT)
def total_salary_by_department(decision: Allow = Depends(get_decision), db: Session = Depends(get_db)) -> list[ReportRow]:
    return reports.salary_by_department(db, decision.scope)

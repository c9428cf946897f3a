from __future__ import annotations

import pytest

from staffscope.security.context import UNSCOPED, RestrictedToDepartment
from staffscope.services import reports


@pytest.fixture
def payroll(db_session, make_department, make_employee):
    eng = make_department("Engineering")
    sales = make_department("Sales")
    make_employee("Mia", eng.id, role="MANAGER", salary=90000, gender="FEMALE", job_title="Lead")
    make_employee("Alan", eng.id, salary=70000, gender="MALE")
    make_employee("Bea", sales.id, salary=40000, gender="FEMALE", job_title="Sales Rep")
    return {"eng": eng, "sales": sales}


def test_total_employees_respects_scope(db_session, payroll):
    assert reports.total_employees(db_session, UNSCOPED) == 3
    assert reports.total_employees(db_session, RestrictedToDepartment(payroll["sales"].id)) == 1


def test_employees_by_department(db_session, payroll):
    rows = reports.employees_by_department(db_session, UNSCOPED)

    assert [(r.label, r.count) for r in rows] == [("Engineering", 2), ("Sales", 1)]
    assert rows[0].average_salary == pytest.approx(80000)
    assert rows[0].total_salary == pytest.approx(160000)


def test_manager_report_sees_only_own_department(db_session, payroll):
    rows = reports.employees_by_gender(db_session, RestrictedToDepartment(payroll["eng"].id))

    assert [(r.label, r.count) for r in rows] == [("FEMALE", 1), ("MALE", 1)]


def test_employees_by_job_title(db_session, payroll):
    rows = reports.employees_by_job_title(db_session, UNSCOPED)

    assert {r.label: r.count for r in rows} == {"Engineer": 1, "Lead": 1, "Sales Rep": 1}


def test_salary_by_department_highest_first(db_session, payroll):
    rows = reports.salary_by_department(db_session, UNSCOPED)

    assert [r.label for r in rows] == ["Engineering", "Sales"]
    assert rows[1].total_salary == pytest.approx(40000)


def test_empty_scope_reports_nothing(db_session, make_department):
    empty = make_department("Legal")

    assert reports.total_employees(db_session, RestrictedToDepartment(empty.id)) == 0
    assert reports.employees_by_department(db_session, RestrictedToDepartment(empty.id)) == []

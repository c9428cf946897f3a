from __future__ import annotations

from datetime import date, datetime
from typing import Any, Mapping, TypeVar

import pydantic
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from staffscope.errors import ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)

_EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


def coerce(model_cls: type[ModelT], data: ModelT | Mapping[str, Any]) -> ModelT:
    """Accept a model instance or a plain mapping; schema errors become ValidationError."""

    if isinstance(data, model_cls):
        return data
    try:
        return model_cls.model_validate(data)
    except pydantic.ValidationError as exc:
        raise ValidationError(f"Invalid {model_cls.__name__}", errors=exc.errors(include_url=False)) from exc


class EmployeeDraft(BaseModel):
    """Employee fields supplied on creation (role and department travel separately)."""

    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: str = Field(max_length=100, pattern=_EMAIL_PATTERN)
    phone_number: str | None = Field(default=None, max_length=30)
    job_title: str = Field(min_length=1, max_length=100)
    salary: float = Field(gt=0)
    hire_date: date | None = None
    date_of_birth: date | None = None
    gender: str | None = Field(default=None, max_length=10)

    @field_validator("date_of_birth")
    @classmethod
    def _birth_date_in_past(cls, value: date | None) -> date | None:
        if value is not None and value >= date.today():
            raise ValueError("Date of birth must be in the past")
        return value


class EmployeeCreateRequest(EmployeeDraft):
    role: str = Field(min_length=1)
    department_id: int


class EmployeePatch(BaseModel):
    """Partial update; only fields explicitly set are applied."""

    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    last_name: str | None = Field(default=None, min_length=1, max_length=100)
    email: str | None = Field(default=None, max_length=100, pattern=_EMAIL_PATTERN)
    phone_number: str | None = Field(default=None, max_length=30)
    job_title: str | None = Field(default=None, min_length=1, max_length=100)
    salary: float | None = Field(default=None, gt=0)
    hire_date: date | None = None
    date_of_birth: date | None = None
    gender: str | None = Field(default=None, max_length=10)
    department_id: int | None = None

    @model_validator(mode="after")
    def _required_columns_not_cleared(self) -> EmployeePatch:
        for name in ("first_name", "last_name", "email", "job_title", "salary", "department_id"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be cleared")
        return self

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class EmployeeSearchCriteria(BaseModel):
    name: str | None = Field(default=None, max_length=50)
    department_id: int | None = None
    job_title: str | None = Field(default=None, max_length=50)
    gender: str | None = Field(default=None, max_length=10)


class EmployeeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    first_name: str
    last_name: str
    email: str
    phone_number: str | None
    job_title: str
    salary: float
    gender: str | None
    hire_date: date | None
    date_of_birth: date | None
    department_id: int
    created_at: datetime


class ProvisionedEmployeeOut(BaseModel):
    employee: EmployeeOut
    username: str
    initial_password: str


class ReportRowOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    label: str | None
    count: int
    average_salary: float | None
    total_salary: float | None

from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import CheckConstraint, Date, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from staffscope.db.base import Base


class Employee(Base):
    __tablename__ = "employees"
    __table_args__ = (CheckConstraint("salary > 0", name="salary_positive"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    phone_number: Mapped[str | None] = mapped_column(String(30), nullable=True)

    job_title: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    salary: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False), nullable=False)
    gender: Mapped[str | None] = mapped_column(String(10), nullable=True, index=True)

    hire_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    date_of_birth: Mapped[date | None] = mapped_column(Date, nullable=True)

    department_id: Mapped[int] = mapped_column(ForeignKey("departments.id"), nullable=False, index=True)

    # Exclusive ownership: each employee owns exactly one principal. Removal of
    # that principal happens in services.employees.delete_employee.
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), unique=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

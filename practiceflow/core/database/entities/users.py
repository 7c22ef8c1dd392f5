"""
User and employee entity models.

Users are application accounts; employees are HR records keyed by an
employee code. The two are linked by matching the employee's logon email to
the user's email.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field

from ..base import Base, utc_now


class User(Base, table=True):
    """Application account.

    Table: users
    """

    __tablename__ = "users"

    id: str = Field(primary_key=True, max_length=64)
    email: str = Field(max_length=255, unique=True, index=True)
    name: str = Field(max_length=255)
    is_system_admin: bool = Field(default=False)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def __repr__(self) -> str:
        return f"User(id={self.id}, email={self.email})"


class Employee(Base, table=True):
    """HR employee record.

    Table: employees
    """

    __tablename__ = "employees"

    id: Optional[int] = Field(default=None, primary_key=True)
    emp_code: str = Field(max_length=32, unique=True, index=True)
    emp_name: str = Field(max_length=255)
    win_logon: Optional[str] = Field(default=None, max_length=255, index=True)
    job_grade: Optional[str] = Field(default=None, max_length=32)
    active: bool = Field(default=True)

    def __repr__(self) -> str:
        return f"Employee(emp_code={self.emp_code}, win_logon={self.win_logon})"

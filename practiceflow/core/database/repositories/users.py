"""
User and employee repositories.

Employees are linked to users by email: an employee's ``win_logon`` either
equals the user's email or shares its local part (before ``@``).
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from sqlalchemy import func, or_
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..entities.users import Employee, User
from .base import SQLModelRepository


class UserRepository(SQLModelRepository[User]):
    """Repository for application accounts."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, User)

    async def get_by_email(self, email: str) -> Optional[User]:
        stmt = select(User).where(func.lower(User.email) == email.lower())
        result = await self.session.exec(stmt)
        return result.first()

    async def get_many(self, user_ids: Sequence[str]) -> dict[str, User]:
        """Users keyed by id; unknown ids are absent."""
        if not user_ids:
            return {}
        result = await self.session.exec(select(User).where(col(User.id).in_(set(user_ids))))
        return {user.id: user for user in result.all()}


class EmployeeRepository(SQLModelRepository[Employee]):
    """Repository for HR employee records."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Employee)

    async def get_by_code(self, emp_code: str) -> Optional[Employee]:
        result = await self.session.exec(select(Employee).where(Employee.emp_code == emp_code))
        return result.first()

    async def get_many(self, emp_codes: Sequence[str]) -> dict[str, Employee]:
        codes = {code for code in emp_codes if code}
        if not codes:
            return {}
        result = await self.session.exec(select(Employee).where(col(Employee.emp_code).in_(codes)))
        return {employee.emp_code: employee for employee in result.all()}

    async def find_codes_for_email(self, email: str) -> List[str]:
        """Employee codes whose logon matches ``email`` or its local part."""
        local_part = email.split("@")[0].lower()
        stmt = select(Employee.emp_code).where(
            or_(
                func.lower(Employee.win_logon) == email.lower(),
                func.lower(Employee.win_logon).like(f"{local_part}@%"),
            )
        )
        result = await self.session.exec(stmt)
        return list(result.all())

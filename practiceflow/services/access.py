"""
Identity and access rules.

Service-line roles and task team roles share one ladder
(ADMINISTRATOR > PARTNER > MANAGER > SUPERVISOR > USER > VIEWER). Access to a
task is granted, in order, to system admins, to ADMINISTRATOR/PARTNER grants in
the task's sub-group, and to task team members whose team role meets the
required role.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel

from practiceflow.core.database.entities.clients import Client
from practiceflow.core.database.entities.tasks import Task
from practiceflow.core.database.entities.users import User
from practiceflow.core.database.repositories.bundle import RepositoryBundle
from practiceflow.core.errors import ForbiddenError, NotFoundError
from practiceflow.core.logging_config import get_logger
from practiceflow.core.models.domain.enums import ROLE_RANKS, ServiceLineRole, TaskAccessType

logger = get_logger(__name__)

FULL_ACCESS_ROLES = (ServiceLineRole.ADMINISTRATOR.value, ServiceLineRole.PARTNER.value)


def rank(role: Optional[str]) -> int:
    """Rank of a role on the ladder; unknown or missing roles rank 0."""
    if not role:
        return 0
    return ROLE_RANKS.get(str(role).upper(), 0)


def has_role(user_role: Optional[str], required_role: Optional[str]) -> bool:
    return rank(user_role) >= rank(required_role)


def highest_role(roles: Iterable[Optional[str]]) -> Optional[str]:
    best = None
    for role in roles:
        if role and rank(role) > rank(best):
            best = role
    return best


class TaskAccessResult(BaseModel):
    can_access: bool
    access_type: TaskAccessType
    task_role: Optional[str] = None
    service_line_role: Optional[str] = None
    service_line: Optional[str] = None
    is_system_admin: bool = False


class AccessService:
    """Resolves what a user may see and do."""

    def __init__(self, repos: RepositoryBundle) -> None:
        self.repos = repos

    # ------------------------------------------------------------------
    # Service lines
    # ------------------------------------------------------------------

    async def get_user_service_lines(self, user: User) -> List[Dict]:
        """The user's grants grouped by master service line.

        System admins see every service line as ADMINISTRATOR.
        """
        mappings = await self.repos.service_lines.list_all()
        sub_groups: Dict[str, Dict] = {}
        for mapping in mappings:
            sub_groups.setdefault(
                mapping.sub_group,
                {
                    "code": mapping.sub_group,
                    "description": mapping.sub_group_desc,
                    "master_code": mapping.master_code,
                    "master_desc": mapping.master_desc or mapping.master_code,
                },
            )

        if user.is_system_admin:
            grants = {code: ServiceLineRole.ADMINISTRATOR.value for code in sub_groups}
        else:
            grants = {grant.sub_group: grant.role for grant in await self.repos.service_line_users.list_for_user(user.id)}

        grouped: Dict[str, Dict] = {}
        for code, role in grants.items():
            info = sub_groups.get(code)
            if info is None:
                logger.warning(f"User {user.id} has a grant for unmapped sub-group {code}")
                continue
            entry = grouped.setdefault(
                info["master_code"],
                {"service_line": info["master_code"], "description": info["master_desc"], "role": None, "sub_groups": []},
            )
            entry["sub_groups"].append({"code": code, "description": info["description"], "role": role})
            entry["role"] = highest_role([entry["role"], role])

        for entry in grouped.values():
            entry["sub_groups"].sort(key=lambda sub_group: sub_group["code"])
        return [grouped[key] for key in sorted(grouped)]

    async def get_service_line_role(self, user: User, sub_group: str) -> Optional[str]:
        if user.is_system_admin:
            return ServiceLineRole.ADMINISTRATOR.value
        grant = await self.repos.service_line_users.get_grant(user.id, sub_group)
        return grant.role if grant else None

    async def require_service_line_role(self, user: User, sub_group: str, required_role: str) -> str:
        role = await self.get_service_line_role(user, sub_group)
        if not has_role(role, required_role):
            raise ForbiddenError(
                f"{required_role} role required in service line group {sub_group}",
                details={"sub_group": sub_group, "role": role},
            )
        return role

    async def resolve_service_line_codes(
        self, master_code: Optional[str] = None, sub_group: Optional[str] = None
    ) -> List[str]:
        """External service line codes for a route scope."""
        return await self.repos.service_lines.codes_for(
            master_code=master_code, sub_groups=[sub_group] if sub_group else None
        )

    async def user_sub_groups(self, user: User) -> List[str]:
        if user.is_system_admin:
            return sorted({mapping.sub_group for mapping in await self.repos.service_lines.list_all()})
        return [grant.sub_group for grant in await self.repos.service_line_users.list_for_user(user.id)]

    async def accessible_service_line_codes(self, user: User) -> List[str]:
        """Union of the external codes of every group the user belongs to."""
        if user.is_system_admin:
            return await self.repos.service_lines.codes_for()
        return await self.repos.service_lines.codes_for(sub_groups=await self.user_sub_groups(user))

    async def scoped_service_line_codes(
        self, user: User, master_code: Optional[str] = None, sub_group: Optional[str] = None
    ) -> Optional[List[str]]:
        """Codes a listing is restricted to.

        ``None`` means unrestricted, which only happens for system admins
        without a scope.
        """
        if not master_code and not sub_group:
            if user.is_system_admin:
                return None
            return await self.accessible_service_line_codes(user)

        codes = await self.resolve_service_line_codes(master_code, sub_group)
        if user.is_system_admin:
            return codes
        allowed = set(await self.accessible_service_line_codes(user))
        return [code for code in codes if code in allowed]

    async def task_sub_group(self, task: Task) -> Optional[str]:
        mapping = await self.repos.service_lines.get_by_code(task.serv_line_code)
        return mapping.sub_group if mapping else None

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    async def check_task_access(
        self, user: User, task_id: int, required_role: Optional[str] = None
    ) -> TaskAccessResult:
        if user.is_system_admin:
            return TaskAccessResult(can_access=True, access_type=TaskAccessType.SYSTEM_ADMIN, is_system_admin=True)

        task = await self.repos.tasks.get_by_id(task_id)
        if task is None:
            return TaskAccessResult(can_access=False, access_type=TaskAccessType.NO_ACCESS)

        mapping = await self.repos.service_lines.get_by_code(task.serv_line_code)
        service_line = mapping.master_code if mapping else task.serv_line_code
        service_line_role = None
        if mapping is not None:
            grant = await self.repos.service_line_users.get_grant(user.id, mapping.sub_group)
            service_line_role = grant.role if grant else None
            if service_line_role in FULL_ACCESS_ROLES:
                return TaskAccessResult(
                    can_access=True,
                    access_type=TaskAccessType.SERVICE_LINE_ADMIN,
                    service_line_role=service_line_role,
                    service_line=service_line,
                )

        member = await self.repos.task_team.get_member(task_id, user.id)
        if member is None:
            return TaskAccessResult(
                can_access=False, access_type=TaskAccessType.NO_ACCESS, service_line=task.serv_line_code
            )

        return TaskAccessResult(
            can_access=required_role is None or has_role(member.role, required_role),
            access_type=TaskAccessType.TASK_MEMBER,
            task_role=member.role,
            service_line_role=service_line_role,
            service_line=service_line,
        )

    async def require_task_access(self, user: User, task_id: int, required_role: Optional[str] = None) -> Task:
        """Load a task the user may access, raising 404/403 otherwise."""
        task = await self.repos.tasks.get_by_id(task_id)
        if task is None:
            raise NotFoundError("Task not found", details={"task_id": task_id})
        access = await self.check_task_access(user, task_id, required_role)
        if not access.can_access:
            logger.info(f"Denied task access: user={user.id} task={task_id} required={required_role}")
            raise ForbiddenError("You do not have access to this task", details={"required_role": required_role})
        return task

    async def can_manage_task(self, user: User, task_id: int) -> bool:
        """System admin, MANAGER+ in the task's sub-group, or MANAGER+ on the task team."""
        if user.is_system_admin:
            return True
        task = await self.repos.tasks.get_by_id(task_id)
        if task is None:
            return False
        sub_group = await self.task_sub_group(task)
        if sub_group is not None:
            grant = await self.repos.service_line_users.get_grant(user.id, sub_group)
            if grant is not None and has_role(grant.role, ServiceLineRole.MANAGER.value):
                return True
        member = await self.repos.task_team.get_member(task_id, user.id)
        return member is not None and has_role(member.role, ServiceLineRole.MANAGER.value)

    async def require_task_manager(self, user: User, task_id: int) -> Task:
        task = await self.repos.tasks.get_by_id(task_id)
        if task is None:
            raise NotFoundError("Task not found", details={"task_id": task_id})
        if not await self.can_manage_task(user, task_id):
            raise ForbiddenError("Manager access to this task is required")
        return task

    # ------------------------------------------------------------------
    # Clients
    # ------------------------------------------------------------------

    async def require_client_access(self, user: User, client_id: int, required_role: Optional[str] = None) -> Client:
        """Load a client the user may see.

        A client is visible through its tasks: the user needs a grant (of at
        least ``required_role``) in a sub-group that one of the client's tasks
        belongs to. System admins see every client.
        """
        client = await self.repos.clients.get_by_id(client_id)
        if client is None:
            raise NotFoundError("Client not found", details={"client_id": client_id})
        if user.is_system_admin:
            return client

        grants = await self.repos.service_line_users.list_for_user(user.id)
        sub_groups = [grant.sub_group for grant in grants if has_role(grant.role, required_role)]
        codes = await self.repos.service_lines.codes_for(sub_groups=sub_groups) if sub_groups else []
        stmt = self.repos.tasks.build_query(client_ids=[client_id], serv_line_codes=codes, include_archived=True)
        if not codes or await self.repos.tasks.count(stmt) == 0:
            raise ForbiddenError(
                "You do not have access to this client", details={"client_id": client_id, "required_role": required_role}
            )
        return client

    # ------------------------------------------------------------------
    # Employees
    # ------------------------------------------------------------------

    async def find_employee_codes_for_user(self, user: User) -> List[str]:
        return await self.repos.employees.find_codes_for_email(user.email)

    async def find_user_for_employee_code(self, emp_code: str) -> Optional[User]:
        """Resolve an employee code to the user account sharing its logon email."""
        employee = await self.repos.employees.get_by_code(emp_code.strip())
        if employee is None or not employee.win_logon:
            return None
        user = await self.repos.users.get_by_email(employee.win_logon)
        if user is None:
            logger.debug(f"No user account for employee {emp_code} ({employee.win_logon})")
        return user

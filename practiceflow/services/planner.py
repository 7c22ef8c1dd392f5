"""
Resource planning.

Allocations are dated blocks of time with an inclusive end date. A team
member's allocation lives on their ``TaskTeam`` row; leave, training and other
non-client time is booked as ``NonClientAllocation``. Capacity is eight hours
per business day (Monday to Friday).
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Sequence

from practiceflow.core.database.entities.tasks import NonClientAllocation, Task, TaskTeam
from practiceflow.core.database.entities.users import User
from practiceflow.core.database.repositories.bundle import RepositoryBundle
from practiceflow.core.errors import ForbiddenError, NotFoundError, ValidationError
from practiceflow.core.logging_config import get_logger
from practiceflow.core.models.domain.enums import ServiceLineRole
from practiceflow.core.models.io.common import Page
from practiceflow.core.models.io.planner import (
    AllocationPeriod,
    AllocationUpdate,
    ClientPlannerRow,
    ClientPlannerTask,
    EmployeePlannerRow,
    NonClientAllocationCreate,
    NonClientAllocationUpdate,
    TeamAllocationRead,
)
from practiceflow.services.access import AccessService, has_role

from .tasks import check_date_range

logger = get_logger(__name__)

HOURS_PER_DAY = 8
DEFAULT_WINDOW_DAYS = 30


def business_days(start: date, end: date) -> int:
    """Weekdays between ``start`` and ``end``, both inclusive."""
    if end < start:
        return 0
    full_weeks, remainder = divmod((end - start).days + 1, 7)
    days = full_weeks * 5
    for offset in range(remainder):
        if (start + timedelta(days=offset)).weekday() < 5:
            days += 1
    return days


def allocation_percentage(hours: float, start: date, end: date) -> int:
    available = business_days(start, end) * HOURS_PER_DAY
    return int(hours / available * 100 + 0.5) if available > 0 else 0


def overlaps(start: date, end: date, other_start: date, other_end: date) -> bool:
    return start <= other_end and other_start <= end


def hours_in_window(hours: Optional[float], start: date, end: date, window_start: date, window_end: date) -> float:
    """Share of ``hours`` booked on business days inside the window."""
    if not hours:
        return 0.0
    total_days = business_days(start, end)
    if total_days == 0:
        return 0.0
    inside = business_days(max(start, window_start), min(end, window_end))
    return hours * inside / total_days


def default_window(start: Optional[date], end: Optional[date]) -> tuple[date, date]:
    start = start or date.today()
    end = end or start + timedelta(days=DEFAULT_WINDOW_DAYS)
    check_date_range(start, end)
    return start, end


def task_period(member: TaskTeam, task: Optional[Task] = None) -> AllocationPeriod:
    return AllocationPeriod(
        kind="TASK",
        id=member.id,
        task_id=member.task_id,
        task_code=task.task_code if task else None,
        task_desc=task.task_desc if task else None,
        client_id=task.client_id if task else None,
        role=member.role,
        start_date=member.start_date,
        end_date=member.end_date,
        allocated_hours=member.allocated_hours,
        allocated_percentage=member.allocated_percentage,
        actual_hours=member.actual_hours,
    )


def event_period(event: NonClientAllocation) -> AllocationPeriod:
    return AllocationPeriod(
        kind="NON_CLIENT",
        id=event.id,
        event_type=event.event_type,
        start_date=event.start_date,
        end_date=event.end_date,
        allocated_hours=event.allocated_hours,
        allocated_percentage=event.allocated_percentage,
    )


class PlannerService:
    def __init__(self, repos: RepositoryBundle) -> None:
        self.repos = repos
        self.access = AccessService(repos)

    async def _require_allocation_admin(self, user: User, task_id: int) -> Task:
        task = await self.repos.tasks.get_by_id(task_id)
        if task is None:
            raise NotFoundError("Task not found", details={"task_id": task_id})
        access = await self.access.check_task_access(user, task_id, ServiceLineRole.ADMINISTRATOR.value)
        if not access.can_access and not await self.access.can_manage_task(user, task_id):
            raise ForbiddenError("Only task administrators can change allocations")
        return task

    async def _require_member(self, task_id: int, member_id: int) -> TaskTeam:
        member = await self.repos.task_team.get_by_id(member_id)
        if member is None or member.task_id != task_id:
            raise NotFoundError("Team member not found", details={"member_id": member_id})
        return member

    # ------------------------------------------------------------------
    # Task team allocations
    # ------------------------------------------------------------------

    async def get_team_allocations(self, user: User, task_id: int) -> List[TeamAllocationRead]:
        await self.access.require_task_access(user, task_id, ServiceLineRole.VIEWER.value)
        members = await self.repos.task_team.list_for_task(task_id)
        user_ids = [member.user_id for member in members]
        users = await self.repos.users.get_many(user_ids)

        others = [row for row in await self.repos.task_team.list_dated(user_ids=user_ids) if row.task_id != task_id]
        tasks = await self.repos.tasks.get_many([row.task_id for row in others])
        events = await self.repos.non_client_allocations.list_for_users(user_ids)

        other_by_user: Dict[str, List[AllocationPeriod]] = {}
        for row in others:
            other_by_user.setdefault(row.user_id, []).append(task_period(row, tasks.get(row.task_id)))
        for event in events:
            other_by_user.setdefault(event.user_id, []).append(event_period(event))

        result = []
        for member in members:
            account = users.get(member.user_id)
            result.append(
                TeamAllocationRead(
                    member_id=member.id,
                    user_id=member.user_id,
                    name=account.name if account else None,
                    role=member.role,
                    allocation=task_period(member) if member.has_allocation else None,
                    other_allocations=sorted(
                        other_by_user.get(member.user_id, []), key=lambda period: period.start_date
                    ),
                )
            )
        return result

    async def update_allocation(
        self, user: User, task_id: int, member_id: int, payload: AllocationUpdate
    ) -> AllocationPeriod:
        """Set a member's allocation.

        When the dates change and no percentage is given, the percentage is
        recomputed from the hours over the business hours in the period.
        """
        task = await self._require_allocation_admin(user, task_id)
        member = await self._require_member(task_id, member_id)

        start = payload.start_date or member.start_date
        end = payload.end_date or member.end_date
        if start is None or end is None:
            raise ValidationError("An allocation needs a start and an end date")
        check_date_range(start, end)
        await self._check_overlap(member, start, end)

        fields = payload.model_fields_set
        hours = payload.allocated_hours if "allocated_hours" in fields else member.allocated_hours
        member.start_date = start
        member.end_date = end
        if "allocated_hours" in fields:
            member.allocated_hours = payload.allocated_hours
        if "actual_hours" in fields:
            member.actual_hours = payload.actual_hours
        if "allocated_percentage" in fields:
            member.allocated_percentage = payload.allocated_percentage
        elif ("start_date" in fields or "end_date" in fields) and hours:
            member.allocated_percentage = allocation_percentage(hours, start, end)

        member = await self.repos.task_team.update(member)
        logger.info(f"Allocation updated: task={task_id} member={member_id} {start}..{end} by={user.id}")
        return task_period(member, task)

    async def _check_overlap(self, member: TaskTeam, start: date, end: date) -> None:
        rows = await self.repos.task_team.list_dated(user_ids=[member.user_id], task_ids=[member.task_id])
        for row in rows:
            if row.id != member.id and overlaps(start, end, row.start_date, row.end_date):
                raise ValidationError(
                    "Allocation overlaps another allocation for this user on the task",
                    details={"conflicting_id": row.id, "start_date": str(row.start_date), "end_date": str(row.end_date)},
                )

    async def clear_allocation(self, user: User, task_id: int, member_id: int) -> TeamAllocationRead:
        await self._require_allocation_admin(user, task_id)
        member = await self._require_member(task_id, member_id)
        member.start_date = None
        member.end_date = None
        member.allocated_hours = None
        member.allocated_percentage = None
        member.actual_hours = None
        member = await self.repos.task_team.update(member)
        account = await self.repos.users.get_by_id(member.user_id)
        return TeamAllocationRead(
            member_id=member.id,
            user_id=member.user_id,
            name=account.name if account else None,
            role=member.role,
            allocation=None,
            other_allocations=[],
        )

    # ------------------------------------------------------------------
    # Planners
    # ------------------------------------------------------------------

    async def client_planner(
        self,
        user: User,
        *,
        service_line: Optional[str] = None,
        sub_group: Optional[str] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Page[ClientPlannerRow]:
        """Dated allocations in the window, grouped by task and by client."""
        window_start, window_end = default_window(start, end)
        codes = await self.access.scoped_service_line_codes(user, service_line, sub_group)
        tasks = {
            task.id: task
            for task in await self.repos.tasks.find_all(
                self.repos.tasks.build_query(search=search, serv_line_codes=codes)
            )
        }
        allocations = await self.repos.task_team.list_dated(
            task_ids=list(tasks), window_start=window_start, window_end=window_end
        )

        by_task: Dict[int, List[AllocationPeriod]] = {}
        for member in allocations:
            by_task.setdefault(member.task_id, []).append(task_period(member, tasks[member.task_id]))

        client_ids = {tasks[task_id].client_id for task_id in by_task} - {None}
        clients = await self.repos.clients.get_many(list(client_ids))
        rows: Dict[Optional[int], ClientPlannerRow] = {}
        for task_id in sorted(by_task, key=lambda task_id: tasks[task_id].task_code):
            task = tasks[task_id]
            client = clients.get(task.client_id)
            row = rows.setdefault(
                task.client_id,
                ClientPlannerRow(
                    client_id=task.client_id,
                    client_code=client.client_code if client else None,
                    client_name=client.client_name if client else None,
                    tasks=[],
                ),
            )
            row.tasks.append(
                ClientPlannerTask(
                    task_id=task.id, task_code=task.task_code, task_desc=task.task_desc, allocations=by_task[task_id]
                )
            )

        ordered = sorted(rows.values(), key=lambda row: (row.client_name is None, row.client_name or ""))
        offset = (page - 1) * limit
        return Page.build(ordered[offset : offset + limit], len(ordered), page, limit)

    async def employee_planner(
        self,
        user: User,
        *,
        service_line: Optional[str] = None,
        sub_group: Optional[str] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Page[EmployeePlannerRow]:
        """Users in the caller's groups with their bookings and utilisation in the window."""
        window_start, window_end = default_window(start, end)
        sub_groups = [sub_group] if sub_group else await self.access.user_sub_groups(user)
        if sub_group and not user.is_system_admin and sub_group not in await self.access.user_sub_groups(user):
            raise ForbiddenError("You are not a member of this service line group")
        if service_line and not sub_group:
            mappings = await self.repos.service_lines.list_all()
            in_line = {mapping.sub_group for mapping in mappings if mapping.master_code == service_line}
            sub_groups = [code for code in sub_groups if code in in_line]

        grants = await self.repos.service_line_users.list_for_sub_groups(sub_groups)
        users = await self.repos.users.get_many([grant.user_id for grant in grants])
        candidates = sorted(users.values(), key=lambda account: (account.name or account.email).lower())
        if search:
            needle = search.strip().lower()
            candidates = [
                account for account in candidates if needle in (account.name or "").lower() or needle in account.email.lower()
            ]
        offset = (page - 1) * limit
        page_users = candidates[offset : offset + limit]
        user_ids = [account.id for account in page_users]

        members = await self.repos.task_team.list_dated(
            user_ids=user_ids, window_start=window_start, window_end=window_end
        )
        tasks = await self.repos.tasks.get_many([member.task_id for member in members])
        events = await self.repos.non_client_allocations.list_for_users(user_ids, window_start, window_end)

        periods: Dict[str, List[AllocationPeriod]] = {uid: [] for uid in user_ids}
        hours: Dict[str, float] = {uid: 0.0 for uid in user_ids}
        for member in members:
            periods[member.user_id].append(task_period(member, tasks.get(member.task_id)))
            hours[member.user_id] += hours_in_window(
                member.allocated_hours, member.start_date, member.end_date, window_start, window_end
            )
        for event in events:
            periods[event.user_id].append(event_period(event))
            hours[event.user_id] += hours_in_window(
                event.allocated_hours, event.start_date, event.end_date, window_start, window_end
            )

        available = float(business_days(window_start, window_end) * HOURS_PER_DAY)
        rows = [
            EmployeePlannerRow(
                user_id=account.id,
                name=account.name or account.email,
                email=account.email,
                allocations=sorted(periods[account.id], key=lambda period: period.start_date),
                total_allocated_hours=round(hours[account.id], 2),
                available_hours=available,
                utilisation=round(hours[account.id] / available * 100, 1) if available else 0.0,
            )
            for account in page_users
        ]
        return Page.build(rows, len(candidates), page, limit)

    # ------------------------------------------------------------------
    # Non-client allocations
    # ------------------------------------------------------------------

    async def _require_booking_rights(self, user: User, target_user_id: str) -> None:
        """Users book their own time; MANAGER+ in a shared group books for others."""
        if user.is_system_admin or user.id == target_user_id:
            return
        own = {grant.sub_group: grant.role for grant in await self.repos.service_line_users.list_for_user(user.id)}
        shared = _shared_groups(own, await self.repos.service_line_users.list_for_user(target_user_id))
        if not any(has_role(own[code], ServiceLineRole.MANAGER.value) for code in shared):
            raise ForbiddenError("You cannot book time for this user")

    async def create_non_client(self, user: User, payload: NonClientAllocationCreate) -> AllocationPeriod:
        if await self.repos.users.get_by_id(payload.user_id) is None:
            raise NotFoundError("User not found", details={"user_id": payload.user_id})
        await self._require_booking_rights(user, payload.user_id)
        check_date_range(payload.start_date, payload.end_date)

        hours = payload.allocated_hours
        if hours is None:
            hours = float(business_days(payload.start_date, payload.end_date) * HOURS_PER_DAY)
        event = NonClientAllocation(
            user_id=payload.user_id,
            event_type=payload.event_type.value,
            start_date=payload.start_date,
            end_date=payload.end_date,
            allocated_hours=hours,
            allocated_percentage=100,
            notes=payload.notes,
            created_by=user.id,
        )
        event = await self.repos.non_client_allocations.create(event)
        logger.info(f"Non-client allocation {event.event_type} booked for {event.user_id} by {user.id}")
        return event_period(event)

    async def _require_event(self, user: User, event_id: int) -> NonClientAllocation:
        event = await self.repos.non_client_allocations.get_by_id(event_id)
        if event is None:
            raise NotFoundError("Non-client allocation not found", details={"id": event_id})
        await self._require_booking_rights(user, event.user_id)
        return event

    async def update_non_client(self, user: User, event_id: int, payload: NonClientAllocationUpdate) -> AllocationPeriod:
        event = await self._require_event(user, event_id)
        changes = payload.model_dump(exclude_unset=True)
        start = changes.get("start_date") or event.start_date
        end = changes.get("end_date") or event.end_date
        check_date_range(start, end)

        if changes.get("event_type") is not None:
            event.event_type = changes["event_type"].value
        if "notes" in changes:
            event.notes = changes["notes"]
        dates_changed = (start, end) != (event.start_date, event.end_date)
        event.start_date, event.end_date = start, end
        if changes.get("allocated_hours") is not None:
            event.allocated_hours = changes["allocated_hours"]
        elif dates_changed:
            event.allocated_hours = float(business_days(start, end) * HOURS_PER_DAY)
        return event_period(await self.repos.non_client_allocations.update(event))

    async def delete_non_client(self, user: User, event_id: int) -> None:
        event = await self._require_event(user, event_id)
        await self.repos.non_client_allocations.delete(event.id)


def _shared_groups(own: Dict[str, str], grants: Iterable) -> Sequence[str]:
    return [grant.sub_group for grant in grants if grant.sub_group in own]

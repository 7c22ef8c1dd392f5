"""
Approval routing service.

An approval instantiates a configured route for one workflow record. Steps
are created from the route's step configuration: conditional steps are only
created when their condition holds for the approval context, USER steps
resolve their assignee from the context and ROLE steps are open to anyone
holding the role. Every mutating operation commits once, so an approval and
its steps (or a step decision and its workflow effect) land together.
"""

from __future__ import annotations

from collections import OrderedDict
from typing import Any, Dict, List, Optional, Sequence

from practiceflow.core import monitoring
from practiceflow.core.database.base import utc_now
from practiceflow.core.database.entities.acceptance import ClientAcceptance
from practiceflow.core.database.entities.approvals import (
    Approval,
    ApprovalDelegation,
    ApprovalRoute,
    ApprovalStep,
)
from practiceflow.core.database.entities.users import User
from practiceflow.core.database.repositories.bundle import RepositoryBundle
from practiceflow.core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from practiceflow.core.logging_config import get_logger
from practiceflow.core.models.domain.enums import (
    PRIORITY_ORDER,
    ApprovalPriority,
    ApprovalStatus,
    NotificationType,
    StepStatus,
    StepType,
    WorkflowType,
)
from practiceflow.core.models.io.approvals import (
    ApprovalActionResult,
    ApprovalCreate,
    ApprovalRead,
    ApprovalStepRead,
    DelegationCreate,
    RouteCreate,
    RouteRead,
    UserApprovalsResponse,
)
from practiceflow.services.access import AccessService, has_role, highest_role
from practiceflow.services.notifications import NotificationService

from .conditions import evaluate_condition, resolve_path
from .registry import DEFAULT_ROUTES, display_description, display_title, get_workflow

logger = get_logger(__name__)


def is_approval_complete(steps: Sequence[ApprovalStep], requires_all_steps: bool) -> bool:
    """Whether the approved steps satisfy the approval.

    With ``requires_all_steps`` every required step must be approved,
    otherwise one approved required step is enough.
    """
    required = [step for step in steps if step.is_required]
    if requires_all_steps:
        return all(step.status == StepStatus.APPROVED.value for step in required)
    return any(step.status == StepStatus.APPROVED.value for step in required)


def first_pending_step(steps: Sequence[ApprovalStep]) -> Optional[ApprovalStep]:
    pending = [step for step in steps if step.status == StepStatus.PENDING.value]
    return min(pending, key=lambda step: (step.step_order, step.id or 0)) if pending else None


def route_to_read(route: ApprovalRoute) -> RouteRead:
    return RouteRead(
        id=route.id,
        workflow_type=route.workflow_type,
        route_name=route.route_name,
        description=route.description,
        config=route.get_config(),
        is_default=route.is_default,
        is_active=route.is_active,
    )


class ApprovalService:
    """Creates approvals, lists what a user must act on and records decisions."""

    def __init__(self, repos: RepositoryBundle) -> None:
        self.repos = repos
        self.access = AccessService(repos)
        self.notifications = NotificationService(repos)

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    async def get_route(self, workflow_type: str, route_name: Optional[str] = None) -> ApprovalRoute:
        """The named active route, else the default route for the workflow type."""
        if route_name:
            route = await self.repos.approval_routes.get_active_by_name(workflow_type, route_name)
        else:
            route = await self.repos.approval_routes.get_default(workflow_type)
            if route is None:
                route = await self.repos.approval_routes.get_active_by_name(
                    workflow_type, get_workflow(workflow_type).default_route
                )
        if route is None:
            raise NotFoundError(
                f"No route found for workflow type: {workflow_type}",
                details={"workflow_type": workflow_type, "route_name": route_name},
            )
        return route

    async def create_approval(
        self,
        workflow_type: str,
        workflow_id: int,
        requested_by: str,
        title: Optional[str] = None,
        description: Optional[str] = None,
        priority: str = ApprovalPriority.MEDIUM.value,
        context: Optional[Dict[str, Any]] = None,
        route_name: Optional[str] = None,
        commit: bool = True,
    ) -> Approval:
        """Open an approval for a workflow record.

        Args:
            workflow_type: One of the registered workflow types
            workflow_id: Id of the record being approved
            requested_by: User id of the requester
            title: Display title; built from the context when omitted
            description: Display description; built from the context when omitted
            priority: HIGH, MEDIUM or LOW
            context: Data used for step conditions and assignee paths
            route_name: Explicit route; the workflow's default route otherwise
            commit: Commit at the end. Callers grouping the approval with
                their own writes pass ``False`` and commit themselves.

        Returns:
            The created approval

        Raises:
            NotFoundError: If no active route is found
            ConflictError: If the workflow record already has a pending approval
        """
        context = dict(context or {})
        for existing in await self.repos.approvals.list_for_workflow(workflow_type, workflow_id):
            if existing.status == ApprovalStatus.PENDING.value:
                raise ConflictError(
                    f"{workflow_type} {workflow_id} already has a pending approval",
                    details={"approval_id": existing.id},
                )
        route = await self.get_route(workflow_type, route_name)
        config = route.get_config()

        approval = Approval(
            workflow_type=workflow_type,
            workflow_id=workflow_id,
            status=ApprovalStatus.PENDING.value,
            priority=priority,
            title=title or display_title(workflow_type, context),
            description=description if description is not None else display_description(workflow_type, context),
            requested_by=requested_by,
            route_id=route.id,
            requires_all_steps=bool(config.get("requires_all_steps", True)),
        )
        approval.set_context(context)
        await self.repos.approvals.stage(approval)

        steps = await self._create_steps(approval, config, context)
        current = first_pending_step(steps)
        approval.current_step_id = current.id if current else None
        await self.repos.approvals.stage(approval)

        await self._notify_assignees(approval, steps)
        if commit:
            await self.repos.commit()

        logger.info(
            f"Approval created: id={approval.id} workflow={workflow_type}:{workflow_id} "
            f"route={route.route_name} steps={len(steps)}"
        )
        monitoring.log_workflow_event(
            "approval_created", approval_id=approval.id, workflow_type=workflow_type, steps=len(steps)
        )
        return approval

    async def request_approval(self, user: User, payload: ApprovalCreate) -> Approval:
        """Open an approval for a workflow that has no service of its own.

        Raises:
            ValidationError: If the workflow's approvals are opened by its own service
        """
        workflow_type = payload.workflow_type.value
        if get_workflow(workflow_type).managed:
            logger.info(f"User {user.id} tried to open a {workflow_type} approval directly")
            raise ValidationError(
                f"{workflow_type} approvals are opened through their own workflow",
                details={"workflow_type": workflow_type},
            )
        return await self.create_approval(
            workflow_type,
            payload.workflow_id,
            requested_by=user.id,
            title=payload.title,
            description=payload.description,
            priority=payload.priority.value,
            context=payload.context,
            route_name=payload.route_name,
        )

    async def _create_steps(
        self, approval: Approval, config: Dict[str, Any], context: Dict[str, Any]
    ) -> List[ApprovalStep]:
        steps: List[ApprovalStep] = []
        for step_config in sorted(config.get("steps", []), key=lambda item: item.get("step_order", 0)):
            condition = step_config.get("condition")
            if condition and not evaluate_condition(condition, context):
                logger.debug(f"Skipping step {step_config.get('step_order')} of approval {approval.id}: {condition}")
                continue

            assigned_to = None
            if step_config.get("step_type") == StepType.USER.value and step_config.get("assigned_to_user_id_path"):
                assigned_to = await self._resolve_assignee(context, step_config["assigned_to_user_id_path"])

            step = ApprovalStep(
                approval_id=approval.id,
                step_order=step_config.get("step_order", len(steps) + 1),
                step_type=step_config.get("step_type", StepType.USER.value),
                is_required=step_config.get("is_required", True),
                assigned_to_user_id=assigned_to,
                assigned_to_role=step_config.get("assigned_to_role"),
                status=StepStatus.PENDING.value,
            )
            steps.append(await self.repos.approval_steps.stage(step))
        return steps

    async def _resolve_assignee(self, context: Dict[str, Any], path: str) -> Optional[str]:
        """User id for a context value holding a user id or an employee code."""
        value = resolve_path(context, path)
        if value is None or str(value).strip() == "":
            return None
        value = str(value).strip()

        user = await self.repos.users.get_by_id(value)
        if user is not None:
            return user.id

        user = await self.access.find_user_for_employee_code(value)
        if user is None:
            logger.warning(f"Approval assignee {value!r} at {path} has no user account")
            return None
        return user.id

    async def _notify_assignees(self, approval: Approval, steps: Sequence[ApprovalStep]) -> None:
        requester = await self.repos.users.get_by_id(approval.requested_by)
        requester_name = requester.name if requester and requester.name else "A user"
        workflow_name = get_workflow(approval.workflow_type).name
        sent = 0
        for step in steps:
            if step.status != StepStatus.PENDING.value or not step.assigned_to_user_id:
                continue
            notification = await self.notifications.notify(
                step.assigned_to_user_id,
                NotificationType.APPROVAL_ASSIGNED.value,
                f"Approval required: {approval.title}",
                f"{requester_name} requested your approval ({workflow_name}).",
                action_url=f"/approvals/{approval.id}",
                from_user_id=approval.requested_by,
            )
            sent += notification is not None
        if sent == 0:
            logger.info(f"No approval notifications sent for approval {approval.id}")

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    async def to_read(self, approval: Approval, steps: Optional[Sequence[ApprovalStep]] = None) -> ApprovalRead:
        if steps is None:
            steps = await self.repos.approval_steps.list_for_approval(approval.id)
        requester = await self.repos.users.get_by_id(approval.requested_by)
        return ApprovalRead(
            id=approval.id,
            workflow_type=approval.workflow_type,
            workflow_id=approval.workflow_id,
            status=approval.status,
            priority=approval.priority,
            title=approval.title,
            description=approval.description,
            requested_by=approval.requested_by,
            requested_by_name=requester.name if requester else None,
            route_id=approval.route_id,
            current_step_id=approval.current_step_id,
            requires_all_steps=approval.requires_all_steps,
            context=approval.get_context(),
            completed_at=approval.completed_at,
            completed_by=approval.completed_by,
            created_at=approval.created_at,
            steps=[ApprovalStepRead.model_validate(step) for step in steps],
        )

    async def get_approval(self, approval_id: int, user: User) -> ApprovalRead:
        """An approval visible to its requester, its approvers or a system admin."""
        approval = await self.repos.approvals.get_by_id(approval_id)
        if approval is None:
            raise NotFoundError("Approval not found", details={"approval_id": approval_id})
        steps = await self.repos.approval_steps.list_for_approval(approval.id)
        if not user.is_system_admin and approval.requested_by != user.id:
            involved = False
            for step in steps:
                if user.id in (step.assigned_to_user_id, step.delegated_to_user_id, step.approved_by):
                    involved = True
                    break
                if step.status == StepStatus.PENDING.value and await self._permission(step, approval, user):
                    involved = True
                    break
            if not involved:
                raise ForbiddenError("You do not have access to this approval")
        return await self.to_read(approval, steps)

    async def get_user_approvals(self, user: User) -> UserApprovalsResponse:
        """Pending approvals the user can act on, highest priority and newest first."""
        now = utc_now()
        delegations = await self.repos.delegations.list_active_to(user.id, now)
        delegated_from: Dict[str, List[Optional[str]]] = {}
        for delegation in delegations:
            delegated_from.setdefault(delegation.from_user_id, []).append(delegation.workflow_type)

        assigned = await self.repos.approval_steps.list_pending_assigned([user.id, *delegated_from])
        unassigned = await self.repos.approval_steps.list_pending_unassigned()
        approvals = {
            approval.id: approval
            for approval in await self.repos.approvals.list_pending(
                [step.approval_id for step in [*assigned, *unassigned]]
            )
        }

        matched: "OrderedDict[int, Approval]" = OrderedDict()
        for step in assigned:
            approval = approvals.get(step.approval_id)
            if approval is None:
                continue
            if user.id in (step.assigned_to_user_id, step.delegated_to_user_id) or any(
                workflow_type in (None, approval.workflow_type)
                for workflow_type in delegated_from.get(step.assigned_to_user_id, [])
            ):
                matched[approval.id] = approval

        fallback_ids = await self._client_acceptance_fallback_ids(user)
        role_cache: Dict[str, Optional[str]] = {}
        for step in unassigned:
            approval = approvals.get(step.approval_id)
            if approval is None or approval.id in matched:
                continue
            if step.assigned_to_role:
                if await self._holds_role(user, step.assigned_to_role, approval, role_cache):
                    matched[approval.id] = approval
            elif approval.workflow_type == WorkflowType.CLIENT_ACCEPTANCE.value and approval.id in fallback_ids:
                matched[approval.id] = approval

        ordered = sorted(
            matched.values(),
            key=lambda approval: (PRIORITY_ORDER.get(approval.priority, 0), approval.created_at),
            reverse=True,
        )
        items = [await self.to_read(approval) for approval in ordered]
        grouped: Dict[str, List[ApprovalRead]] = {}
        for item in items:
            grouped.setdefault(item.workflow_type, []).append(item)
        return UserApprovalsResponse(approvals=items, grouped_by_workflow=grouped, total_count=len(items))

    async def count_pending_for_user(self, user: User) -> int:
        return (await self.get_user_approvals(user)).total_count

    async def _client_acceptance_fallback_ids(self, user: User) -> set[int]:
        """Approval ids of submitted acceptances awaiting this user as partner."""
        codes = await self.access.find_employee_codes_for_user(user)
        if not codes:
            return set()
        acceptances = await self.repos.acceptances.list_pending_for_partner(codes)
        return {
            acceptance.approval_id
            for acceptance in acceptances
            if acceptance.approval_id is not None and acceptance.completed_at is not None
        }

    async def _holds_role(
        self, user: User, required_role: str, approval: Approval, cache: Optional[Dict[str, Optional[str]]] = None
    ) -> bool:
        """Role check for ROLE steps.

        The role is checked in the approval's ``sub_group`` when its context
        names one, otherwise in any group the user belongs to.
        """
        if user.is_system_admin:
            return True
        sub_group = approval.get_context().get("sub_group") or ""
        cache = cache if cache is not None else {}
        if sub_group not in cache:
            if sub_group:
                cache[sub_group] = await self.access.get_service_line_role(user, sub_group)
            else:
                grants = await self.repos.service_line_users.list_for_user(user.id)
                cache[sub_group] = highest_role(grant.role for grant in grants)
        return has_role(cache[sub_group], required_role)

    # ------------------------------------------------------------------
    # Decisions
    # ------------------------------------------------------------------

    async def _permission(self, step: ApprovalStep, approval: Approval, user: User) -> Optional[str]:
        """How ``user`` may act on ``step``, or ``None`` when they may not."""
        if step.assigned_to_user_id == user.id:
            return "assignee"
        if step.is_delegated and step.delegated_to_user_id == user.id:
            return "delegate"
        if step.assigned_to_user_id and await self._active_delegation(step.assigned_to_user_id, user, approval):
            return "delegation"
        if step.assigned_to_user_id is None:
            if step.assigned_to_role:
                if await self._holds_role(user, step.assigned_to_role, approval):
                    return "role"
            elif approval.workflow_type == WorkflowType.CLIENT_ACCEPTANCE.value:
                if await self._matches_pending_partner(approval, user):
                    return "pending_partner"
        return None

    async def _active_delegation(
        self, from_user_id: str, user: User, approval: Approval
    ) -> Optional[ApprovalDelegation]:
        for delegation in await self.repos.delegations.list_active_to(user.id, utc_now()):
            if delegation.from_user_id == from_user_id and delegation.workflow_type in (None, approval.workflow_type):
                return delegation
        return None

    async def _matches_pending_partner(self, approval: Approval, user: User) -> bool:
        acceptance = await self.repos.acceptances.get_by_id(approval.workflow_id)
        if acceptance is None or acceptance.approval_id != approval.id or not acceptance.pending_partner_code:
            return False
        partner_code = acceptance.pending_partner_code.strip().upper()
        codes = await self.access.find_employee_codes_for_user(user)
        return any(code.strip().upper() == partner_code for code in codes)

    async def _verify_step_permission(self, step: ApprovalStep, approval: Approval, user: User) -> None:
        """Allow the assignee, a delegate, a role holder or the pending partner.

        Acting through an active delegation records it on the step.
        """
        permission = await self._permission(step, approval, user)
        if permission is None:
            logger.info(f"User {user.id} denied action on approval step {step.id}")
            raise ForbiddenError("You do not have permission to act on this approval")
        if permission == "delegation":
            step.is_delegated = True
            step.delegated_to_user_id = user.id

    async def _load_pending_step(self, step_id: int) -> tuple[ApprovalStep, Approval]:
        step = await self.repos.approval_steps.get_by_id(step_id)
        if step is None:
            raise NotFoundError("Approval step not found", details={"step_id": step_id})
        approval = await self.repos.approvals.get_by_id(step.approval_id)
        if approval is None:
            raise NotFoundError("Approval not found", details={"approval_id": step.approval_id})
        if step.status != StepStatus.PENDING.value or approval.status != ApprovalStatus.PENDING.value:
            raise ConflictError(
                "This approval step has already been decided",
                details={"step_status": step.status, "approval_status": approval.status},
            )
        return step, approval

    async def approve_step(self, step_id: int, user: User, comment: Optional[str] = None) -> ApprovalActionResult:
        step, approval = await self._load_pending_step(step_id)
        await self._verify_step_permission(step, approval, user)

        now = utc_now()
        step.status = StepStatus.APPROVED.value
        step.approved_at = now
        step.approved_by = user.id
        step.comment = comment
        await self.repos.approval_steps.stage(step)

        steps = await self.repos.approval_steps.list_for_approval(approval.id)
        is_complete = is_approval_complete(steps, approval.requires_all_steps)
        next_step = None if is_complete else first_pending_step(steps)

        if is_complete:
            approval.status = ApprovalStatus.APPROVED.value
            approval.completed_at = now
            approval.completed_by = user.id
            for other in steps:
                if other.status == StepStatus.PENDING.value:
                    other.status = StepStatus.SKIPPED.value
                    await self.repos.approval_steps.stage(other)
        approval.current_step_id = next_step.id if next_step else None
        await self.repos.approvals.stage(approval)

        if is_complete:
            await self._run_completion_handler(approval, user)
            await self.notifications.notify(
                approval.requested_by,
                NotificationType.APPROVAL_COMPLETED.value,
                f"Approved: {approval.title}",
                f"Your {get_workflow(approval.workflow_type).name.lower()} request was approved.",
                action_url=f"/approvals/{approval.id}",
                from_user_id=user.id,
            )

        await self.repos.commit()
        logger.info(f"Approval step approved: step={step.id} approval={approval.id} user={user.id} complete={is_complete}")
        monitoring.log_workflow_event(
            "approval_step_approved", approval_id=approval.id, step_id=step.id, is_complete=is_complete
        )
        return ApprovalActionResult(
            approval=await self.to_read(approval, steps),
            workflow_type=approval.workflow_type,
            workflow_id=approval.workflow_id,
            next_step=ApprovalStepRead.model_validate(next_step) if next_step else None,
            is_complete=is_complete,
        )

    async def reject_step(self, step_id: int, user: User, comment: Optional[str]) -> ApprovalActionResult:
        if not comment or not comment.strip():
            raise ValidationError("A comment is required when rejecting")
        step, approval = await self._load_pending_step(step_id)
        await self._verify_step_permission(step, approval, user)

        now = utc_now()
        step.status = StepStatus.REJECTED.value
        step.approved_at = now
        step.approved_by = user.id
        step.comment = comment.strip()
        await self.repos.approval_steps.stage(step)

        steps = await self.repos.approval_steps.list_for_approval(approval.id)
        for other in steps:
            if other.status == StepStatus.PENDING.value:
                other.status = StepStatus.SKIPPED.value
                await self.repos.approval_steps.stage(other)

        approval.status = ApprovalStatus.REJECTED.value
        approval.completed_at = now
        approval.completed_by = user.id
        approval.current_step_id = None
        await self.repos.approvals.stage(approval)
        await self._run_rejection_handler(approval, user, comment.strip())

        await self.notifications.notify(
            approval.requested_by,
            NotificationType.APPROVAL_REJECTED.value,
            f"Rejected: {approval.title}",
            comment.strip(),
            action_url=f"/approvals/{approval.id}",
            from_user_id=user.id,
        )
        await self.repos.commit()
        logger.info(f"Approval step rejected: step={step.id} approval={approval.id} user={user.id}")
        monitoring.log_workflow_event("approval_step_rejected", approval_id=approval.id, step_id=step.id)
        return ApprovalActionResult(
            approval=await self.to_read(approval, steps),
            workflow_type=approval.workflow_type,
            workflow_id=approval.workflow_id,
            next_step=None,
            is_complete=True,
        )

    async def _linked_acceptance(self, approval: Approval) -> Optional[ClientAcceptance]:
        """The acceptance whose open approval is ``approval``, if any."""
        acceptance = await self.repos.acceptances.get_by_id(approval.workflow_id)
        if acceptance is None or acceptance.approval_id != approval.id:
            logger.warning(f"Approval {approval.id} is not the open approval of acceptance {approval.workflow_id}")
            return None
        return acceptance

    async def _run_completion_handler(self, approval: Approval, user: User) -> None:
        """Apply the approved workflow's effect inside the current transaction."""
        # Imported here: both services open approvals through this module
        from practiceflow.services.acceptance.service import AcceptanceService
        from practiceflow.services.change_requests import ChangeRequestService

        if approval.workflow_type == WorkflowType.CLIENT_ACCEPTANCE.value:
            acceptance = await self._linked_acceptance(approval)
            if acceptance is not None:
                await AcceptanceService(self.repos).approve(
                    acceptance.client_id, user, approval_id=approval.id, commit=False
                )
            return
        if approval.workflow_type == WorkflowType.CHANGE_REQUEST.value:
            await ChangeRequestService(self.repos).apply(approval, user)
            return
        logger.debug(f"No completion handler for workflow type {approval.workflow_type}")

    async def _run_rejection_handler(self, approval: Approval, user: User, comment: str) -> None:
        """Return the rejected workflow record to an editable state inside the current transaction."""
        from practiceflow.services.acceptance.service import AcceptanceService
        from practiceflow.services.change_requests import ChangeRequestService

        if approval.workflow_type == WorkflowType.CLIENT_ACCEPTANCE.value:
            acceptance = await self._linked_acceptance(approval)
            if acceptance is not None:
                await AcceptanceService(self.repos).reopen(acceptance)
            return
        if approval.workflow_type == WorkflowType.CHANGE_REQUEST.value:
            await ChangeRequestService(self.repos).reject(approval, user, comment)
            return
        logger.debug(f"No rejection handler for workflow type {approval.workflow_type}")

    # ------------------------------------------------------------------
    # Delegations
    # ------------------------------------------------------------------

    async def delegate(self, from_user: User, payload: DelegationCreate) -> ApprovalDelegation:
        if payload.end_date < payload.start_date:
            raise ValidationError("End date must not be before start date")
        if payload.to_user_id == from_user.id:
            raise ValidationError("Approvals cannot be delegated to yourself")
        if await self.repos.users.get_by_id(payload.to_user_id) is None:
            raise NotFoundError("Delegate user not found", details={"user_id": payload.to_user_id})

        delegation = ApprovalDelegation(
            from_user_id=from_user.id,
            to_user_id=payload.to_user_id,
            workflow_type=payload.workflow_type.value if payload.workflow_type else None,
            start_date=payload.start_date.replace(tzinfo=None),
            end_date=payload.end_date.replace(tzinfo=None),
            reason=payload.reason,
            is_active=True,
        )
        delegation = await self.repos.delegations.create(delegation)
        logger.info(
            f"Approval delegation created: {from_user.id} -> {payload.to_user_id} "
            f"({delegation.workflow_type or 'all workflows'})"
        )
        return delegation

    async def list_delegations(self, user: User) -> List[ApprovalDelegation]:
        return await self.repos.delegations.list_for_user(user.id)

    async def revoke_delegation(self, delegation_id: int, user: User) -> ApprovalDelegation:
        delegation = await self.repos.delegations.get_by_id(delegation_id)
        if delegation is None:
            raise NotFoundError("Delegation not found", details={"delegation_id": delegation_id})
        if delegation.from_user_id != user.id and not user.is_system_admin:
            raise ForbiddenError("Only the delegating user can revoke a delegation")
        delegation.is_active = False
        return await self.repos.delegations.update(delegation)

    # ------------------------------------------------------------------
    # Routes
    # ------------------------------------------------------------------

    async def list_routes(self, workflow_type: Optional[str] = None) -> List[RouteRead]:
        return [route_to_read(route) for route in await self.repos.approval_routes.list_routes(workflow_type)]

    async def create_route(self, user: User, payload: RouteCreate) -> RouteRead:
        if not user.is_system_admin:
            raise ForbiddenError("Only system administrators can configure approval routes")
        workflow_type = payload.workflow_type.value
        if await self.repos.approval_routes.get_by_name(workflow_type, payload.route_name):
            raise ConflictError(
                f"Route {payload.route_name} already exists for {workflow_type}",
                details={"workflow_type": workflow_type, "route_name": payload.route_name},
            )
        for step in payload.config.steps:
            if step.step_type == StepType.USER and not step.assigned_to_user_id_path:
                raise ValidationError(f"USER step {step.step_order} needs assigned_to_user_id_path")
            if step.step_type == StepType.ROLE and not step.assigned_to_role:
                raise ValidationError(f"ROLE step {step.step_order} needs assigned_to_role")
            if step.step_type == StepType.CONDITIONAL and not step.condition:
                raise ValidationError(f"CONDITIONAL step {step.step_order} needs a condition")

        if payload.is_default:
            for existing in await self.repos.approval_routes.list_routes(workflow_type):
                if existing.is_default:
                    existing.is_default = False
                    await self.repos.approval_routes.stage(existing)

        route = ApprovalRoute(
            workflow_type=workflow_type,
            route_name=payload.route_name,
            description=payload.description,
            is_default=payload.is_default,
            is_active=True,
        )
        route.set_config(payload.config.model_dump(mode="json"))
        route = await self.repos.approval_routes.create(route)
        logger.info(f"Approval route created: {workflow_type}/{route.route_name} default={route.is_default}")
        return route_to_read(route)

    async def seed_default_routes(self) -> int:
        """Insert the built-in routes that do not exist yet; returns how many were added."""
        added = 0
        for definition in DEFAULT_ROUTES:
            if await self.repos.approval_routes.get_by_name(definition["workflow_type"], definition["route_name"]):
                continue
            route = ApprovalRoute(
                workflow_type=definition["workflow_type"],
                route_name=definition["route_name"],
                description=definition["description"],
                is_default=definition["is_default"],
                is_active=True,
            )
            route.set_config(definition["config"])
            await self.repos.approval_routes.stage(route)
            added += 1
        if added:
            await self.repos.commit()
            logger.info(f"Seeded {added} default approval routes")
        return added

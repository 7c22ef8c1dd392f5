"""
Approvals API Endpoints.

This module provides endpoints for the generic approval workflow: the
caller's pending approvals, step decisions, delegations and route
configuration.
"""

from typing import List, Optional

from fastapi import APIRouter, status

from practiceflow.core.models.domain.enums import WorkflowType
from practiceflow.core.models.io.approvals import (
    ApprovalActionResult,
    ApprovalCreate,
    ApprovalRead,
    DelegationCreate,
    DelegationRead,
    RouteCreate,
    RouteRead,
    StepDecision,
    UserApprovalsResponse,
)
from practiceflow.server.services.deps import ApprovalDep, CurrentUser

router = APIRouter()


@router.get(
    "",
    response_model=UserApprovalsResponse,
    summary="List My Approvals",
    description="Pending approvals the caller can act on, grouped by workflow type.",
)
async def list_my_approvals(user: CurrentUser, approvals: ApprovalDep):
    return await approvals.get_user_approvals(user)


@router.post("", response_model=ApprovalRead, status_code=status.HTTP_201_CREATED, summary="Request Approval")
async def request_approval(payload: ApprovalCreate, user: CurrentUser, approvals: ApprovalDep):
    """
    Open an approval for a workflow item.

    The route is picked by name or the workflow type's default; steps whose
    condition does not hold for the context are skipped. Client acceptances
    and partner/manager change requests are opened by their own endpoints.
    """
    approval = await approvals.request_approval(user, payload)
    return await approvals.to_read(approval)


@router.get("/delegations", response_model=List[DelegationRead], summary="List Delegations")
async def list_delegations(user: CurrentUser, approvals: ApprovalDep):
    return [DelegationRead.model_validate(delegation) for delegation in await approvals.list_delegations(user)]


@router.post(
    "/delegations", response_model=DelegationRead, status_code=status.HTTP_201_CREATED, summary="Delegate Approvals"
)
async def create_delegation(payload: DelegationCreate, user: CurrentUser, approvals: ApprovalDep):
    return DelegationRead.model_validate(await approvals.delegate(user, payload))


@router.delete("/delegations/{delegation_id}", response_model=DelegationRead, summary="Revoke Delegation")
async def revoke_delegation(delegation_id: int, user: CurrentUser, approvals: ApprovalDep):
    return DelegationRead.model_validate(await approvals.revoke_delegation(delegation_id, user))


@router.get("/routes", response_model=List[RouteRead], summary="List Approval Routes")
async def list_routes(user: CurrentUser, approvals: ApprovalDep, workflow_type: Optional[WorkflowType] = None):
    return await approvals.list_routes(workflow_type.value if workflow_type else None)


@router.post(
    "/routes",
    response_model=RouteRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Approval Route",
    responses={403: {"description": "System admin only"}, 409: {"description": "Route name already used"}},
)
async def create_route(payload: RouteCreate, user: CurrentUser, approvals: ApprovalDep):
    return await approvals.create_route(user, payload)


@router.post(
    "/steps/{step_id}/approve",
    response_model=ApprovalActionResult,
    summary="Approve Step",
    responses={403: {"description": "Not allowed to act on this step"}, 409: {"description": "Step is not pending"}},
)
async def approve_step(step_id: int, decision: StepDecision, user: CurrentUser, approvals: ApprovalDep):
    return await approvals.approve_step(step_id, user, decision.comment)


@router.post(
    "/steps/{step_id}/reject",
    response_model=ApprovalActionResult,
    summary="Reject Step",
    responses={400: {"description": "Comment required"}, 409: {"description": "Step is not pending"}},
)
async def reject_step(step_id: int, decision: StepDecision, user: CurrentUser, approvals: ApprovalDep):
    return await approvals.reject_step(step_id, user, decision.comment)


@router.get("/{approval_id}", response_model=ApprovalRead, summary="Get Approval")
async def get_approval(approval_id: int, user: CurrentUser, approvals: ApprovalDep):
    return await approvals.get_approval(approval_id, user)

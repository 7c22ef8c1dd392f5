"""
Compliance Checklist Endpoints.
"""

from fastapi import APIRouter, status

from practiceflow.core.models.io.common import MessageResponse
from practiceflow.core.models.io.compliance import (
    ChecklistItemCreate,
    ChecklistItemRead,
    ChecklistItemUpdate,
    ChecklistResponse,
)
from practiceflow.server.services.deps import ComplianceDep, CurrentUser

router = APIRouter()


@router.get(
    "/{task_id}/compliance-checklist",
    response_model=ChecklistResponse,
    summary="Get Compliance Checklist",
    description="Checklist items ordered by due date with completion progress and the overdue count.",
)
async def get_checklist(task_id: int, user: CurrentUser, compliance: ComplianceDep):
    return await compliance.get_checklist(user, task_id)


@router.post(
    "/{task_id}/compliance-checklist",
    response_model=ChecklistItemRead,
    status_code=status.HTTP_201_CREATED,
    summary="Add Checklist Item",
)
async def create_checklist_item(
    task_id: int, payload: ChecklistItemCreate, user: CurrentUser, compliance: ComplianceDep
):
    return await compliance.create_item(user, task_id, payload)


@router.patch(
    "/{task_id}/compliance-checklist/{item_id}", response_model=ChecklistItemRead, summary="Update Checklist Item"
)
async def update_checklist_item(
    task_id: int, item_id: int, payload: ChecklistItemUpdate, user: CurrentUser, compliance: ComplianceDep
):
    return await compliance.update_item(user, task_id, item_id, payload)


@router.delete(
    "/{task_id}/compliance-checklist/{item_id}", response_model=MessageResponse, summary="Delete Checklist Item"
)
async def delete_checklist_item(task_id: int, item_id: int, user: CurrentUser, compliance: ComplianceDep):
    await compliance.delete_item(user, task_id, item_id)
    return MessageResponse(message="Checklist item deleted")

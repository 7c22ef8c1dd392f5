"""
SARS Response Tracker Endpoints.

Correspondence with the revenue authority logged against a task, with
deadline tracking.
"""

from typing import List, Optional

from fastapi import APIRouter, Query, status

from practiceflow.core.models.domain.enums import SarsStatus
from practiceflow.core.models.io.common import MessageResponse
from practiceflow.core.models.io.compliance import SarsResponseCreate, SarsResponseRead, SarsResponseUpdate
from practiceflow.server.services.deps import ComplianceDep, CurrentUser

router = APIRouter()


@router.get(
    "/{task_id}/sars-responses",
    response_model=List[SarsResponseRead],
    summary="List SARS Responses",
    description="Responses sorted by deadline, undated ones last. Optionally filtered by status.",
)
async def list_sars_responses(
    task_id: int,
    user: CurrentUser,
    compliance: ComplianceDep,
    status_filter: Optional[SarsStatus] = Query(default=None, alias="status"),
):
    return await compliance.list_sars(user, task_id, status_filter.value if status_filter else None)


@router.post(
    "/{task_id}/sars-responses",
    response_model=SarsResponseRead,
    status_code=status.HTTP_201_CREATED,
    summary="Log SARS Response",
)
async def create_sars_response(
    task_id: int, payload: SarsResponseCreate, user: CurrentUser, compliance: ComplianceDep
):
    return await compliance.create_sars(user, task_id, payload)


@router.patch(
    "/{task_id}/sars-responses/{response_id}", response_model=SarsResponseRead, summary="Update SARS Response"
)
async def update_sars_response(
    task_id: int, response_id: int, payload: SarsResponseUpdate, user: CurrentUser, compliance: ComplianceDep
):
    return await compliance.update_sars(user, task_id, response_id, payload)


@router.delete(
    "/{task_id}/sars-responses/{response_id}", response_model=MessageResponse, summary="Delete SARS Response"
)
async def delete_sars_response(task_id: int, response_id: int, user: CurrentUser, compliance: ComplianceDep):
    await compliance.delete_sars(user, task_id, response_id)
    return MessageResponse(message="SARS response deleted")

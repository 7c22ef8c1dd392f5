"""
Client Acceptance Endpoints.

Risk questionnaire, draft answers, submission for partner approval and
invalidation.
"""

from fastapi import APIRouter, HTTPException

from practiceflow.core.models.domain.enums import ServiceLineRole
from practiceflow.core.models.io.acceptance import (
    AcceptanceInvalidate,
    AcceptanceStatus,
    AcceptanceSubmit,
    AcceptanceSubmitResult,
    AnswersSave,
    QuestionnaireResponse,
)
from practiceflow.core.models.io.common import MessageResponse
from practiceflow.server.services.deps import AcceptanceDep, AccessDep, CurrentUser

router = APIRouter()


@router.get("/{client_id}/acceptance", response_model=AcceptanceStatus, summary="Acceptance Status")
async def acceptance_status(client_id: int, user: CurrentUser, access: AccessDep, acceptance: AcceptanceDep):
    await access.require_client_access(user, client_id)
    return await acceptance.get_status(client_id, user)


@router.get(
    "/{client_id}/acceptance/questionnaire", response_model=QuestionnaireResponse, summary="Acceptance Questionnaire"
)
async def questionnaire(client_id: int, user: CurrentUser, access: AccessDep, acceptance: AcceptanceDep):
    """Question definitions with the saved answers and completion percentage."""
    await access.require_client_access(user, client_id)
    return await acceptance.get_questionnaire(client_id, user)


@router.put(
    "/{client_id}/acceptance/answers",
    response_model=MessageResponse,
    summary="Save Draft Answers",
    responses={409: {"description": "Acceptance is awaiting approval"}},
)
async def save_answers(
    client_id: int, payload: AnswersSave, user: CurrentUser, access: AccessDep, acceptance: AcceptanceDep
):
    await access.require_client_access(user, client_id, ServiceLineRole.USER.value)
    saved = await acceptance.save_answers(client_id, payload.answers)
    return MessageResponse(message=f"Saved {saved} answers")


@router.post(
    "/{client_id}/acceptance/submit",
    response_model=AcceptanceSubmitResult,
    summary="Submit Acceptance",
    responses={400: {"description": "Required questions missing"}, 409: {"description": "Already awaiting approval"}},
)
async def submit(
    client_id: int, payload: AcceptanceSubmit, user: CurrentUser, access: AccessDep, acceptance: AcceptanceDep
):
    """
    Submit the questionnaire.

    Scores the risk and opens a client-acceptance approval assigned to the
    client partner.
    """
    await access.require_client_access(user, client_id, ServiceLineRole.USER.value)
    return await acceptance.submit(client_id, user, payload)


@router.post("/{client_id}/acceptance/invalidate", response_model=AcceptanceStatus, summary="Invalidate Acceptance")
async def invalidate(
    client_id: int, payload: AcceptanceInvalidate, user: CurrentUser, access: AccessDep, acceptance: AcceptanceDep
):
    await access.require_client_access(user, client_id, ServiceLineRole.MANAGER.value)
    if await acceptance.invalidate(client_id, payload.reason, user) is None:
        raise HTTPException(status_code=404, detail="Client has no acceptance")
    return await acceptance.get_status(client_id, user)

"""
Opinion Drafting API Endpoints.

Drafts hang off a task: ``/tasks/{task_id}/opinion-drafts``. Sections are
built through a single action endpoint, documents are uploaded as multipart
form data and the chat keeps a per-draft conversation with the drafting
assistant.
"""

from typing import List, Optional

from fastapi import APIRouter, File, Form, UploadFile, status

from practiceflow.core.models.io.common import MessageResponse
from practiceflow.core.models.io.opinions import (
    ChatExchange,
    ChatMessageCreate,
    ChatMessageRead,
    OpinionDocumentRead,
    OpinionDraftCreate,
    OpinionDraftDetail,
    OpinionDraftRead,
    OpinionDraftUpdate,
    OpinionPreview,
    OpinionSectionRead,
    SectionActionRequest,
    SectionActionResult,
)
from practiceflow.server.services.deps import CurrentUser, OpinionDep

router = APIRouter()

DRAFT_PATH = "/{task_id}/opinion-drafts/{draft_id}"


@router.get("/{task_id}/opinion-drafts", response_model=List[OpinionDraftRead], summary="List Opinion Drafts")
async def list_drafts(task_id: int, user: CurrentUser, opinions: OpinionDep):
    return await opinions.list_drafts(user, task_id)


@router.post(
    "/{task_id}/opinion-drafts",
    response_model=OpinionDraftRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Opinion Draft",
)
async def create_draft(task_id: int, payload: OpinionDraftCreate, user: CurrentUser, opinions: OpinionDep):
    return await opinions.create_draft(user, task_id, payload)


@router.get(DRAFT_PATH, response_model=OpinionDraftDetail, summary="Get Opinion Draft")
async def get_draft(task_id: int, draft_id: int, user: CurrentUser, opinions: OpinionDep):
    return await opinions.get_draft(user, task_id, draft_id)


@router.patch(DRAFT_PATH, response_model=OpinionDraftRead, summary="Update Opinion Draft")
async def update_draft(
    task_id: int, draft_id: int, payload: OpinionDraftUpdate, user: CurrentUser, opinions: OpinionDep
):
    return await opinions.update_draft(user, task_id, draft_id, payload)


@router.delete(DRAFT_PATH, response_model=MessageResponse, summary="Delete Opinion Draft")
async def delete_draft(task_id: int, draft_id: int, user: CurrentUser, opinions: OpinionDep):
    await opinions.delete_draft(user, task_id, draft_id)
    return MessageResponse(message="Opinion draft deleted")


@router.get(f"{DRAFT_PATH}/sections", response_model=List[OpinionSectionRead], summary="List Sections")
async def list_sections(task_id: int, draft_id: int, user: CurrentUser, opinions: OpinionDep):
    return await opinions.list_sections(user, task_id, draft_id)


@router.post(
    f"{DRAFT_PATH}/sections",
    response_model=SectionActionResult,
    summary="Section Action",
    description=(
        "Drive section drafting. `start_section` returns the first guiding question and a generation "
        "state; `answer_question` takes the state back with an answer; `generate_content` turns a "
        "complete state into a section. `create_manual`, `update`, `reorder`, `mark_reviewed` and "
        "`delete` edit saved sections."
    ),
    responses={400: {"description": "Missing or invalid fields for the action"}, 502: {"description": "AI error"}},
)
async def section_action(
    task_id: int, draft_id: int, payload: SectionActionRequest, user: CurrentUser, opinions: OpinionDep
):
    return await opinions.section_action(user, task_id, draft_id, payload)


@router.get(f"{DRAFT_PATH}/documents", response_model=List[OpinionDocumentRead], summary="List Documents")
async def list_documents(task_id: int, draft_id: int, user: CurrentUser, opinions: OpinionDep):
    return await opinions.list_documents(user, task_id, draft_id)


@router.post(
    f"{DRAFT_PATH}/documents",
    response_model=OpinionDocumentRead,
    status_code=status.HTTP_201_CREATED,
    summary="Upload Document",
    responses={413: {"description": "File too large"}, 415: {"description": "File type not allowed"}},
)
async def upload_document(
    task_id: int,
    draft_id: int,
    user: CurrentUser,
    opinions: OpinionDep,
    file: UploadFile = File(...),
    category: Optional[str] = Form(default=None),
):
    """
    Store a document against the draft.

    The declared size is checked before the body is read, and at most one
    byte over the limit is ever read into memory.
    """
    file_name = file.filename or ""
    content_type = file.content_type or ""
    if file.size is not None:
        opinions.store.validate(file_name, content_type or "application/octet-stream", file.size)
    data = await file.read(opinions.store.max_bytes + 1)
    return await opinions.upload_document(
        user,
        task_id,
        draft_id,
        file_name=file_name,
        content_type=content_type,
        data=data,
        category=category,
    )


@router.delete(
    f"{DRAFT_PATH}/documents/{{document_id}}", response_model=MessageResponse, summary="Delete Document"
)
async def delete_document(task_id: int, draft_id: int, document_id: int, user: CurrentUser, opinions: OpinionDep):
    await opinions.delete_document(user, task_id, draft_id, document_id)
    return MessageResponse(message="Document deleted")


@router.get(f"{DRAFT_PATH}/chat", response_model=List[ChatMessageRead], summary="Chat History")
async def chat_history(task_id: int, draft_id: int, user: CurrentUser, opinions: OpinionDep):
    return await opinions.chat_history(user, task_id, draft_id)


@router.post(f"{DRAFT_PATH}/chat", response_model=ChatExchange, summary="Send Chat Message")
async def send_chat_message(
    task_id: int, draft_id: int, payload: ChatMessageCreate, user: CurrentUser, opinions: OpinionDep
):
    return await opinions.chat(user, task_id, draft_id, payload.message)


@router.get(f"{DRAFT_PATH}/preview", response_model=OpinionPreview, summary="Preview Opinion")
async def preview(task_id: int, draft_id: int, user: CurrentUser, opinions: OpinionDep):
    return await opinions.preview(user, task_id, draft_id)

"""
Opinion drafting service.

Drafts belong to a task; reading needs VIEWER access to the task and any
change needs USER access. Every change to a draft's content bumps its
``version``.
"""

from __future__ import annotations

from typing import List, Optional

from practiceflow.core import monitoring
from practiceflow.core.database.base import utc_now
from practiceflow.core.database.entities.opinions import (
    OpinionChatMessage,
    OpinionDocument,
    OpinionDraft,
    OpinionSection,
)
from practiceflow.core.database.entities.users import User
from practiceflow.core.database.repositories.bundle import RepositoryBundle
from practiceflow.core.errors import NotFoundError, ValidationError
from practiceflow.core.logging_config import get_logger
from practiceflow.core.models.domain.enums import OpinionStatus, ServiceLineRole
from practiceflow.core.models.io.opinions import (
    ChatExchange,
    ChatMessageRead,
    OpinionDocumentRead,
    OpinionDraftCreate,
    OpinionDraftDetail,
    OpinionDraftRead,
    OpinionDraftUpdate,
    OpinionPreview,
    OpinionSectionRead,
    SectionAction,
    SectionActionRequest,
    SectionActionResult,
)
from practiceflow.services.access import AccessService

from . import sections as guided
from .assistant import UNAVAILABLE_REPLY, DraftingAssistant
from .documents import DocumentStore, extract_text

logger = get_logger(__name__)

CHAT_HISTORY_LIMIT = 10
CONTEXT_SECTION_CHARS = 2000
CONTEXT_DOCUMENT_CHARS = 1500


def truncate(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[:limit].rstrip() + "..."


def document_read(document: OpinionDocument) -> OpinionDocumentRead:
    read = OpinionDocumentRead.model_validate(document)
    read.has_text = bool(document.extracted_text)
    return read


def render_markdown(draft: OpinionDraft, sections: List[OpinionSection]) -> str:
    parts = [f"# {draft.title}"]
    for section in sections:
        parts.append(f"## {section.title}\n\n{section.content.strip()}")
    return "\n\n".join(parts) + "\n"


class OpinionService:
    def __init__(
        self,
        repos: RepositoryBundle,
        assistant: Optional[DraftingAssistant] = None,
        store: Optional[DocumentStore] = None,
    ) -> None:
        self.repos = repos
        self.access = AccessService(repos)
        self.assistant = assistant if assistant is not None else DraftingAssistant.from_settings()
        self.store = store if store is not None else DocumentStore()

    # ------------------------------------------------------------------
    # Drafts
    # ------------------------------------------------------------------

    async def _load_draft(self, user: User, task_id: int, draft_id: int, write: bool = False) -> OpinionDraft:
        required = ServiceLineRole.USER.value if write else ServiceLineRole.VIEWER.value
        await self.access.require_task_access(user, task_id, required)
        draft = await self.repos.opinion_drafts.get_for_task(task_id, draft_id)
        if draft is None:
            raise NotFoundError("Opinion draft not found", details={"draft_id": draft_id})
        return draft

    async def _touch(self, draft: OpinionDraft) -> None:
        draft.version += 1
        draft.updated_at = utc_now()
        await self.repos.opinion_drafts.stage(draft)

    async def list_drafts(self, user: User, task_id: int) -> List[OpinionDraftRead]:
        await self.access.require_task_access(user, task_id, ServiceLineRole.VIEWER.value)
        return [OpinionDraftRead.model_validate(draft) for draft in await self.repos.opinion_drafts.list_for_task(task_id)]

    async def create_draft(self, user: User, task_id: int, payload: OpinionDraftCreate) -> OpinionDraftRead:
        await self.access.require_task_access(user, task_id, ServiceLineRole.USER.value)
        draft = await self.repos.opinion_drafts.create(
            OpinionDraft(task_id=task_id, title=payload.title.strip(), created_by=user.id)
        )
        logger.info(f"Opinion draft {draft.id} created on task {task_id} by {user.id}")
        return OpinionDraftRead.model_validate(draft)

    async def get_draft(self, user: User, task_id: int, draft_id: int) -> OpinionDraftDetail:
        draft = await self._load_draft(user, task_id, draft_id)
        sections = await self.repos.opinion_sections.list_for_draft(draft_id)
        documents = await self.repos.opinion_documents.list_for_draft(draft_id)
        return OpinionDraftDetail(
            **OpinionDraftRead.model_validate(draft).model_dump(),
            sections=[OpinionSectionRead.model_validate(section) for section in sections],
            document_count=len(documents),
        )

    async def update_draft(
        self, user: User, task_id: int, draft_id: int, payload: OpinionDraftUpdate
    ) -> OpinionDraftRead:
        draft = await self._load_draft(user, task_id, draft_id, write=True)
        changed = False
        if payload.title is not None and payload.title.strip() != draft.title:
            draft.title = payload.title.strip()
            changed = True
        if payload.status is not None and payload.status.value != draft.status:
            draft.status = payload.status.value
            changed = True
        if changed:
            await self._touch(draft)
            await self.repos.commit()
        return OpinionDraftRead.model_validate(draft)

    async def delete_draft(self, user: User, task_id: int, draft_id: int) -> None:
        draft = await self._load_draft(user, task_id, draft_id, write=True)
        documents = await self.repos.opinion_documents.list_for_draft(draft_id)
        rows = [
            *await self.repos.opinion_sections.list_for_draft(draft_id),
            *documents,
            *await self.repos.opinion_chat.history(draft_id),
        ]
        for row in rows:
            await self.repos.session.delete(row)
        await self.repos.session.delete(draft)
        await self.repos.commit()
        for document in documents:
            self.store.remove(document.file_path)
        logger.info(f"Opinion draft {draft_id} deleted by {user.id}")

    # ------------------------------------------------------------------
    # Sections
    # ------------------------------------------------------------------

    async def list_sections(self, user: User, task_id: int, draft_id: int) -> List[OpinionSectionRead]:
        await self._load_draft(user, task_id, draft_id)
        return [
            OpinionSectionRead.model_validate(section)
            for section in await self.repos.opinion_sections.list_for_draft(draft_id)
        ]

    async def section_action(
        self, user: User, task_id: int, draft_id: int, request: SectionActionRequest
    ) -> SectionActionResult:
        draft = await self._load_draft(user, task_id, draft_id, write=True)
        action = request.action

        if action == SectionAction.START_SECTION:
            question, state = guided.start_generation(request.section_type or "", request.custom_title)
            return SectionActionResult(message="Section creation started", question=question, state=state, complete=False)

        if action == SectionAction.ANSWER_QUESTION:
            if request.state is None:
                raise ValidationError("State and answer required")
            question, state = guided.record_answer(request.state, request.answer or "")
            return SectionActionResult(
                message="Questions complete" if state.is_complete else "Next question",
                question=question,
                state=state,
                complete=state.is_complete,
            )

        if action == SectionAction.GENERATE_CONTENT:
            return await self._generate_section(draft, request)
        if action == SectionAction.CREATE_MANUAL:
            return await self._create_manual(draft, request)
        if action == SectionAction.REORDER:
            return await self._reorder(draft, request)

        section = await self._require_section(draft_id, request.section_id)
        if action == SectionAction.UPDATE:
            if request.title is not None:
                section.title = request.title
            if request.content is not None:
                section.content = request.content
            message = "Section updated successfully"
        elif action == SectionAction.MARK_REVIEWED:
            reviewed = True if request.reviewed is None else request.reviewed
            section.reviewed = reviewed
            section.reviewed_by = user.id if reviewed else None
            section.reviewed_at = utc_now() if reviewed else None
            message = "Section review updated"
        else:
            await self.repos.session.delete(section)
            await self._touch(draft)
            await self.repos.commit()
            return SectionActionResult(message="Section deleted successfully")

        await self.repos.opinion_sections.stage(section)
        await self._touch(draft)
        await self.repos.commit()
        return SectionActionResult(message=message, section=OpinionSectionRead.model_validate(section))

    async def _require_section(self, draft_id: int, section_id: Optional[int]) -> OpinionSection:
        if section_id is None:
            raise ValidationError("Section ID required")
        section = await self.repos.opinion_sections.get_for_draft(draft_id, section_id)
        if section is None:
            raise NotFoundError("Section not found", details={"section_id": section_id})
        return section

    async def _append_section(self, draft: OpinionDraft, section: OpinionSection) -> SectionActionResult:
        await self.repos.opinion_sections.stage(section)
        await self._touch(draft)
        await self.repos.commit()
        return SectionActionResult(message="Section created successfully", section=OpinionSectionRead.model_validate(section))

    async def _generate_section(self, draft: OpinionDraft, request: SectionActionRequest) -> SectionActionResult:
        state = request.state
        if state is None:
            raise ValidationError("State required")
        if not state.is_complete:
            raise ValidationError("Cannot generate content before all questions are answered")

        previous = await self.repos.opinion_sections.list_for_draft(draft.id)
        if self.assistant.available:
            documents = await self.repos.opinion_documents.list_for_draft(draft.id)
            prompt = guided.build_generation_prompt(
                state,
                [(section.title, truncate(section.content, CONTEXT_SECTION_CHARS)) for section in previous],
                [
                    (document.file_name, truncate(document.extracted_text, CONTEXT_DOCUMENT_CHARS))
                    for document in documents
                    if document.extracted_text
                ],
            )
            content = await self.assistant.draft_section(prompt)
        else:
            content = guided.template_content(state)
            monitoring.log_ai_call("drafting", None, 0.0, fallback=True)

        order = await self.repos.opinion_sections.max_order(draft.id) + 1
        section = OpinionSection(
            draft_id=draft.id,
            section_type=state.section_type,
            title=guided.section_title(state),
            content=content,
            order=order,
            ai_generated=self.assistant.available,
        )
        result = await self._append_section(draft, section)
        result.message = "Section generated successfully"
        return result

    async def _create_manual(self, draft: OpinionDraft, request: SectionActionRequest) -> SectionActionResult:
        if not request.title or request.content is None:
            raise ValidationError("Title and content required")
        order = request.order or await self.repos.opinion_sections.max_order(draft.id) + 1
        section = OpinionSection(
            draft_id=draft.id,
            section_type=request.section_type or "Custom",
            title=request.title,
            content=request.content,
            order=order,
            ai_generated=False,
        )
        return await self._append_section(draft, section)

    async def _reorder(self, draft: OpinionDraft, request: SectionActionRequest) -> SectionActionResult:
        if not request.reorder:
            raise ValidationError("Reorder data required")
        sections = {section.id: section for section in await self.repos.opinion_sections.list_for_draft(draft.id)}
        for item in request.reorder:
            section = sections.get(item.id)
            if section is None:
                raise NotFoundError("Section not found", details={"section_id": item.id})
            section.order = item.order
            await self.repos.opinion_sections.stage(section)
        await self._touch(draft)
        await self.repos.commit()
        ordered = await self.repos.opinion_sections.list_for_draft(draft.id)
        return SectionActionResult(
            message="Sections reordered successfully",
            sections=[OpinionSectionRead.model_validate(section) for section in ordered],
        )

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    async def list_documents(self, user: User, task_id: int, draft_id: int) -> List[OpinionDocumentRead]:
        await self._load_draft(user, task_id, draft_id)
        return [document_read(document) for document in await self.repos.opinion_documents.list_for_draft(draft_id)]

    async def upload_document(
        self,
        user: User,
        task_id: int,
        draft_id: int,
        *,
        file_name: str,
        content_type: str,
        data: bytes,
        category: Optional[str] = None,
    ) -> OpinionDocumentRead:
        await self._load_draft(user, task_id, draft_id, write=True)
        content_type = content_type or "application/octet-stream"
        self.store.validate(file_name, content_type, len(data))

        path = self.store.save(draft_id, file_name, data)
        try:
            document = await self.repos.opinion_documents.create(
                OpinionDocument(
                    draft_id=draft_id,
                    file_name=file_name,
                    file_path=str(path),
                    file_size=len(data),
                    file_type=content_type,
                    category=category or "OTHER",
                    extracted_text=extract_text(data, file_name, content_type),
                    uploaded_by=user.id,
                )
            )
        except Exception:
            logger.error(f"Failed to record document {file_name} for draft {draft_id}; removing {path}")
            self.store.remove(str(path))
            raise
        return document_read(document)

    async def delete_document(self, user: User, task_id: int, draft_id: int, document_id: int) -> None:
        await self._load_draft(user, task_id, draft_id, write=True)
        document = await self.repos.opinion_documents.get_by_id(document_id)
        if document is None or document.draft_id != draft_id:
            raise NotFoundError("Document not found", details={"document_id": document_id})
        await self.repos.opinion_documents.delete(document_id)
        self.store.remove(document.file_path)

    # ------------------------------------------------------------------
    # Chat and preview
    # ------------------------------------------------------------------

    async def chat_history(self, user: User, task_id: int, draft_id: int) -> List[ChatMessageRead]:
        await self._load_draft(user, task_id, draft_id)
        return [ChatMessageRead.model_validate(message) for message in await self.repos.opinion_chat.history(draft_id)]

    async def _chat_prompt(self, draft: OpinionDraft, message: str) -> str:
        sections = await self.repos.opinion_sections.list_for_draft(draft.id)
        documents = await self.repos.opinion_documents.list_for_draft(draft.id)
        history = await self.repos.opinion_chat.history(draft.id, limit=CHAT_HISTORY_LIMIT)

        parts = [f"Opinion draft: {draft.title}"]
        for section in sections:
            parts.append(f"## {section.title}\n{truncate(section.content, CONTEXT_SECTION_CHARS)}")
        for document in documents:
            if document.extracted_text:
                parts.append(f"[{document.file_name}]\n{truncate(document.extracted_text, CONTEXT_DOCUMENT_CHARS)}")
        if history:
            parts.append("Conversation so far:\n" + "\n".join(f"{item.role}: {item.content}" for item in history))
        parts.append(f"User: {message}")
        return "\n\n".join(parts)

    async def chat(self, user: User, task_id: int, draft_id: int, message: str) -> ChatExchange:
        """Persist the user's message, then the assistant's reply.

        The user's message is kept even when the assistant request fails.
        """
        draft = await self._load_draft(user, task_id, draft_id, write=True)
        text = message.strip()
        if not text:
            raise ValidationError("Message is required")

        # Built before saving so the history excludes this message
        prompt = await self._chat_prompt(draft, text) if self.assistant.available else None
        user_message = await self.repos.opinion_chat.create(
            OpinionChatMessage(draft_id=draft_id, role="user", content=text, user_id=user.id)
        )
        if prompt is not None:
            reply = await self.assistant.reply(prompt)
        else:
            reply = UNAVAILABLE_REPLY
            monitoring.log_ai_call("chat", None, 0.0, fallback=True)
        assistant_message = await self.repos.opinion_chat.create(
            OpinionChatMessage(draft_id=draft_id, role="assistant", content=reply)
        )
        return ChatExchange(
            user_message=ChatMessageRead.model_validate(user_message),
            assistant_message=ChatMessageRead.model_validate(assistant_message),
        )

    async def preview(self, user: User, task_id: int, draft_id: int) -> OpinionPreview:
        draft = await self._load_draft(user, task_id, draft_id)
        sections = await self.repos.opinion_sections.list_for_draft(draft_id)
        return OpinionPreview(
            draft_id=draft.id,
            title=draft.title,
            version=draft.version,
            status=draft.status or OpinionStatus.DRAFT.value,
            markdown=render_markdown(draft, sections),
        )

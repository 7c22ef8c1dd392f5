"""Tests for opinion drafts, guided sections, documents and chat."""

from pathlib import Path

import pytest
from pydantic_ai.messages import ModelMessage, ModelResponse
from pydantic_ai.models.function import AgentInfo, FunctionModel
from pydantic_ai.models.test import TestModel as ScriptedModel

from practiceflow.core.errors import AIServiceError, ForbiddenError, NotFoundError, ValidationError
from practiceflow.core.models.domain.enums import OpinionStatus, ServiceLineRole
from practiceflow.core.models.io.opinions import (
    OpinionDraftCreate,
    OpinionDraftUpdate,
    SectionAction,
    SectionActionRequest,
    SectionOrder,
)
from practiceflow.core.models.io.tasks import TeamMemberCreate
from practiceflow.services.opinions import DocumentStore, DraftingAssistant, OpinionService
from practiceflow.services.opinions.assistant import UNAVAILABLE_REPLY
from practiceflow.services.tasks import TaskService


def _failing_model() -> FunctionModel:
    def fail(messages: list[ModelMessage], info: AgentInfo) -> ModelResponse:
        raise RuntimeError("upstream timeout")

    return FunctionModel(fail)


@pytest.fixture
def make_service(repos, tmp_path):
    def _make(model=None) -> OpinionService:
        return OpinionService(
            repos, assistant=DraftingAssistant(model=model), store=DocumentStore(tmp_path, max_upload_size_mb=1)
        )

    return _make


@pytest.fixture
def service(make_service) -> OpinionService:
    return make_service()


@pytest.fixture
async def draft(service, repos, world, task):
    await TaskService(repos).add_member(
        world.manager, task.id, TeamMemberCreate(user_id="viewer", role=ServiceLineRole.VIEWER)
    )
    return await service.create_draft(world.manager, task.id, OpinionDraftCreate(title="  Capital gains on land  "))


async def _interview(service, user, task_id, draft_id, section_type, answers):
    """Walk the guided questions and return the final state."""
    result = await service.section_action(
        user, task_id, draft_id, SectionActionRequest(action=SectionAction.START_SECTION, section_type=section_type)
    )
    state = result.state
    for answer in answers:
        result = await service.section_action(
            user,
            task_id,
            draft_id,
            SectionActionRequest(action=SectionAction.ANSWER_QUESTION, state=state, answer=answer),
        )
        state = result.state
    return state


async def _manual(service, world, task, draft, title, order=None):
    result = await service.section_action(
        world.manager,
        task.id,
        draft.id,
        SectionActionRequest(action=SectionAction.CREATE_MANUAL, title=title, content=f"{title} text", order=order),
    )
    return result.section


class TestDrafts:
    async def test_create_and_list(self, service, world, task, draft):
        drafts = await service.list_drafts(world.viewer, task.id)

        assert [item.title for item in drafts] == ["Capital gains on land"]
        assert draft.status == OpinionStatus.DRAFT.value
        assert draft.version == 1

    async def test_viewer_cannot_create(self, service, world, task, draft):
        with pytest.raises(ForbiddenError):
            await service.create_draft(world.viewer, task.id, OpinionDraftCreate(title="Another"))

    async def test_update_bumps_version_only_on_change(self, service, world, task, draft):
        same = await service.update_draft(
            world.manager, task.id, draft.id, OpinionDraftUpdate(title="Capital gains on land")
        )
        assert same.version == 1

        updated = await service.update_draft(
            world.manager, task.id, draft.id, OpinionDraftUpdate(status=OpinionStatus.UNDER_REVIEW)
        )
        assert updated.status == OpinionStatus.UNDER_REVIEW.value
        assert updated.version == 2

    async def test_draft_of_another_task(self, service, world, draft, make_task):
        other = await make_task(task_code="OTHER")
        with pytest.raises(NotFoundError):
            await service.get_draft(world.manager, other.id, draft.id)

    async def test_delete_removes_children_and_files(self, service, world, task, draft):
        await _manual(service, world, task, draft, "Facts")
        await service.upload_document(
            world.manager, task.id, draft.id, file_name="notes.txt", content_type="text/plain", data=b"notes"
        )
        await service.chat(world.manager, task.id, draft.id, "Hello")
        stored = list(Path(service.store.root).rglob("*notes.txt"))
        assert len(stored) == 1

        await service.delete_draft(world.manager, task.id, draft.id)

        assert await service.list_drafts(world.manager, task.id) == []
        assert not stored[0].exists()


class TestGuidedSections:
    async def test_start_returns_first_question(self, service, world, task, draft):
        result = await service.section_action(
            world.manager, task.id, draft.id, SectionActionRequest(action=SectionAction.START_SECTION, section_type="Facts")
        )

        assert result.question.startswith("What are the key factual circumstances")
        assert result.complete is False
        assert result.state.section_type == "Facts"

    async def test_answer_requires_state(self, service, world, task, draft):
        with pytest.raises(ValidationError):
            await service.section_action(
                world.manager, task.id, draft.id, SectionActionRequest(action=SectionAction.ANSWER_QUESTION, answer="x")
            )

    async def test_generate_before_complete(self, service, world, task, draft):
        state = await _interview(service, world.manager, task.id, draft.id, "issue", ["Only one"])

        with pytest.raises(ValidationError):
            await service.section_action(
                world.manager, task.id, draft.id, SectionActionRequest(action=SectionAction.GENERATE_CONTENT, state=state)
            )

    async def test_fallback_generation_without_model(self, service, world, task, draft):
        state = await _interview(service, world.manager, task.id, draft.id, "issue", ["Is it capital?", "Assessment"])
        assert state.is_complete is True

        result = await service.section_action(
            world.manager, task.id, draft.id, SectionActionRequest(action=SectionAction.GENERATE_CONTENT, state=state)
        )

        assert result.message == "Section generated successfully"
        assert result.section.title == "Issue"
        assert result.section.content == "Is it capital?\n\nAssessment"
        assert result.section.ai_generated is False
        assert result.section.order == 1
        detail = await service.get_draft(world.manager, task.id, draft.id)
        assert detail.version == 2

    async def test_generation_with_model(self, make_service, world, task, draft):
        service = make_service(ScriptedModel(custom_output_text="  The receipt is capital in nature.  "))
        state = await _interview(service, world.manager, task.id, draft.id, "conclusion", ["Capital", "Object"])

        result = await service.section_action(
            world.manager, task.id, draft.id, SectionActionRequest(action=SectionAction.GENERATE_CONTENT, state=state)
        )

        assert result.section.content == "The receipt is capital in nature."
        assert result.section.ai_generated is True
        assert result.section.title == "Conclusion"

    async def test_model_failure_is_an_ai_error(self, make_service, world, task, draft):
        service = make_service(_failing_model())
        state = await _interview(service, world.manager, task.id, draft.id, "issue", ["One", "Two"])

        with pytest.raises(AIServiceError):
            await service.section_action(
                world.manager, task.id, draft.id, SectionActionRequest(action=SectionAction.GENERATE_CONTENT, state=state)
            )

        assert await service.list_sections(world.manager, task.id, draft.id) == []


class TestSectionEditing:
    async def test_manual_sections_append_in_order(self, service, world, task, draft):
        await _manual(service, world, task, draft, "Facts")
        second = await _manual(service, world, task, draft, "Law")

        assert second.order == 2
        assert second.section_type == "Custom"

    async def test_manual_requires_title_and_content(self, service, world, task, draft):
        with pytest.raises(ValidationError):
            await service.section_action(
                world.manager, task.id, draft.id, SectionActionRequest(action=SectionAction.CREATE_MANUAL, title="Facts")
            )

    async def test_update(self, service, world, task, draft):
        section = await _manual(service, world, task, draft, "Facts")

        result = await service.section_action(
            world.manager,
            task.id,
            draft.id,
            SectionActionRequest(action=SectionAction.UPDATE, section_id=section.id, content="Revised facts"),
        )

        assert result.section.content == "Revised facts"
        assert result.section.title == "Facts"

    async def test_mark_reviewed_and_unreview(self, service, world, task, draft):
        section = await _manual(service, world, task, draft, "Facts")

        reviewed = await service.section_action(
            world.manager, task.id, draft.id, SectionActionRequest(action=SectionAction.MARK_REVIEWED, section_id=section.id)
        )
        assert reviewed.section.reviewed is True
        assert reviewed.section.reviewed_by == "manager"

        cleared = await service.section_action(
            world.manager,
            task.id,
            draft.id,
            SectionActionRequest(action=SectionAction.MARK_REVIEWED, section_id=section.id, reviewed=False),
        )
        assert cleared.section.reviewed is False
        assert cleared.section.reviewed_at is None

    async def test_reorder(self, service, world, task, draft):
        facts = await _manual(service, world, task, draft, "Facts")
        law = await _manual(service, world, task, draft, "Law")

        result = await service.section_action(
            world.manager,
            task.id,
            draft.id,
            SectionActionRequest(
                action=SectionAction.REORDER,
                reorder=[SectionOrder(id=facts.id, order=2), SectionOrder(id=law.id, order=1)],
            ),
        )

        assert [section.title for section in result.sections] == ["Law", "Facts"]

    async def test_reorder_unknown_section(self, service, world, task, draft):
        with pytest.raises(NotFoundError):
            await service.section_action(
                world.manager,
                task.id,
                draft.id,
                SectionActionRequest(action=SectionAction.REORDER, reorder=[SectionOrder(id=9999, order=1)]),
            )

    async def test_delete_requires_section_id(self, service, world, task, draft):
        with pytest.raises(ValidationError):
            await service.section_action(
                world.manager, task.id, draft.id, SectionActionRequest(action=SectionAction.DELETE)
            )

    async def test_delete(self, service, world, task, draft):
        section = await _manual(service, world, task, draft, "Facts")

        result = await service.section_action(
            world.manager, task.id, draft.id, SectionActionRequest(action=SectionAction.DELETE, section_id=section.id)
        )

        assert result.message == "Section deleted successfully"
        assert await service.list_sections(world.manager, task.id, draft.id) == []

    async def test_viewer_cannot_edit(self, service, world, task, draft):
        with pytest.raises(ForbiddenError):
            await service.section_action(
                world.viewer, task.id, draft.id, SectionActionRequest(action=SectionAction.START_SECTION, section_type="facts")
            )


class TestDocuments:
    async def test_text_upload_is_extracted(self, service, world, task, draft):
        document = await service.upload_document(
            world.manager,
            task.id,
            draft.id,
            file_name="notes.md",
            content_type="text/markdown",
            data=b"# Notes",
            category="RESEARCH",
        )

        assert document.has_text is True
        assert document.category == "RESEARCH"
        assert [item.id for item in await service.list_documents(world.viewer, task.id, draft.id)] == [document.id]

    async def test_binary_upload_defaults_category(self, service, world, task, draft):
        document = await service.upload_document(
            world.manager, task.id, draft.id, file_name="ruling.pdf", content_type="application/pdf", data=b"%PDF"
        )

        assert document.has_text is False
        assert document.category == "OTHER"

    async def test_delete_document(self, service, world, task, draft):
        document = await service.upload_document(
            world.manager, task.id, draft.id, file_name="ruling.pdf", content_type="application/pdf", data=b"%PDF"
        )

        await service.delete_document(world.manager, task.id, draft.id, document.id)

        assert await service.list_documents(world.manager, task.id, draft.id) == []
        with pytest.raises(NotFoundError):
            await service.delete_document(world.manager, task.id, draft.id, document.id)

    async def test_failed_insert_removes_stored_file(self, service, repos, world, task, draft, tmp_path, monkeypatch):
        async def fail(document):
            raise RuntimeError("database unavailable")

        monkeypatch.setattr(repos.opinion_documents, "create", fail)

        with pytest.raises(RuntimeError):
            await service.upload_document(
                world.manager, task.id, draft.id, file_name="ruling.pdf", content_type="application/pdf", data=b"%PDF"
            )

        assert [path for path in tmp_path.rglob("*") if path.is_file()] == []


class TestChatAndPreview:
    async def test_chat_without_model(self, service, world, task, draft):
        exchange = await service.chat(world.manager, task.id, draft.id, "  Is section 9C relevant?  ")

        assert exchange.user_message.content == "Is section 9C relevant?"
        assert exchange.user_message.user_id == "manager"
        assert exchange.assistant_message.content == UNAVAILABLE_REPLY
        history = await service.chat_history(world.viewer, task.id, draft.id)
        assert [message.role for message in history] == ["user", "assistant"]

    async def test_chat_with_model(self, make_service, world, task, draft):
        service = make_service(ScriptedModel(custom_output_text="Yes, consider section 9C."))

        exchange = await service.chat(world.manager, task.id, draft.id, "Is section 9C relevant?")

        assert exchange.assistant_message.content == "Yes, consider section 9C."

    async def test_failed_reply_keeps_user_message(self, make_service, world, task, draft):
        service = make_service(_failing_model())

        with pytest.raises(AIServiceError):
            await service.chat(world.manager, task.id, draft.id, "Hello")

        history = await service.chat_history(world.manager, task.id, draft.id)
        assert [(message.role, message.content) for message in history] == [("user", "Hello")]

    async def test_blank_message(self, service, world, task, draft):
        with pytest.raises(ValidationError):
            await service.chat(world.manager, task.id, draft.id, "   ")

    async def test_preview_markdown(self, service, world, task, draft):
        await _manual(service, world, task, draft, "Facts")
        await _manual(service, world, task, draft, "Law")

        preview = await service.preview(world.viewer, task.id, draft.id)

        assert preview.markdown == "# Capital gains on land\n\n## Facts\n\nFacts text\n\n## Law\n\nLaw text\n"
        assert preview.version == 3

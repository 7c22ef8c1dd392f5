"""Opinion drafting I/O models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from practiceflow.core.models.domain.enums import OpinionStatus


class OpinionDraftCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)


class OpinionDraftUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    status: Optional[OpinionStatus] = None


class OpinionDraftRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    task_id: int
    title: str
    status: str
    version: int
    created_by: str
    created_at: datetime
    updated_at: datetime


class OpinionSectionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    draft_id: int
    section_type: str
    title: str
    content: str
    order: int
    ai_generated: bool
    reviewed: bool
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    updated_at: datetime


class OpinionDraftDetail(OpinionDraftRead):
    sections: List[OpinionSectionRead]
    document_count: int


class QuestionAnswer(BaseModel):
    question: str
    answer: Optional[str] = None


class SectionGenerationState(BaseModel):
    """Interactive generation progress; the client sends it back with every step."""

    section_type: str
    custom_title: Optional[str] = None
    questions: List[QuestionAnswer] = Field(default_factory=list)
    current_question_index: int = 0
    is_complete: bool = False


class SectionAction(str, Enum):
    START_SECTION = "start_section"
    ANSWER_QUESTION = "answer_question"
    GENERATE_CONTENT = "generate_content"
    CREATE_MANUAL = "create_manual"
    UPDATE = "update"
    REORDER = "reorder"
    DELETE = "delete"
    MARK_REVIEWED = "mark_reviewed"


class SectionOrder(BaseModel):
    id: int
    order: int = Field(ge=1)


class SectionActionRequest(BaseModel):
    """Body of ``POST .../sections``; which fields are needed depends on ``action``."""

    action: SectionAction
    section_type: Optional[str] = None
    custom_title: Optional[str] = None
    state: Optional[SectionGenerationState] = None
    answer: Optional[str] = None
    section_id: Optional[int] = None
    title: Optional[str] = None
    content: Optional[str] = None
    order: Optional[int] = Field(default=None, ge=1)
    reviewed: Optional[bool] = None
    reorder: Optional[List[SectionOrder]] = None


class SectionActionResult(BaseModel):
    success: bool = True
    message: str
    question: Optional[str] = None
    complete: Optional[bool] = None
    state: Optional[SectionGenerationState] = None
    section: Optional[OpinionSectionRead] = None
    sections: Optional[List[OpinionSectionRead]] = None


class OpinionDocumentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    draft_id: int
    file_name: str
    file_size: int
    file_type: str
    category: str
    has_text: bool = False
    uploaded_by: str
    created_at: datetime


class ChatMessageCreate(BaseModel):
    message: str = Field(min_length=1)


class ChatMessageRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    draft_id: int
    role: str
    content: str
    user_id: Optional[str] = None
    created_at: datetime


class ChatExchange(BaseModel):
    user_message: ChatMessageRead
    assistant_message: ChatMessageRead


class OpinionPreview(BaseModel):
    draft_id: int
    title: str
    version: int
    status: str
    markdown: str

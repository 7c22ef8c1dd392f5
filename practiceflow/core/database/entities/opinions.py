"""
Opinion drafting entity models.

An ``OpinionDraft`` belongs to a task and is built from ordered
``OpinionSection`` rows, supported by uploaded ``OpinionDocument`` files and an
assistant conversation kept in ``OpinionChatMessage``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field, Text

from ..base import Base, utc_now


class OpinionDraft(Base, table=True):
    """Tax opinion draft.

    ``version`` is bumped on every content change.

    Table: opinion_drafts
    """

    __tablename__ = "opinion_drafts"

    id: Optional[int] = Field(default=None, primary_key=True)
    task_id: int = Field(foreign_key="tasks.id", index=True)
    title: str = Field(max_length=255)
    status: str = Field(default="DRAFT", max_length=16)
    version: int = Field(default=1)
    created_by: str = Field(max_length=64)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})


class OpinionSection(Base, table=True):
    """Section of an opinion draft.

    Table: opinion_sections
    """

    __tablename__ = "opinion_sections"

    id: Optional[int] = Field(default=None, primary_key=True)
    draft_id: int = Field(foreign_key="opinion_drafts.id", index=True)
    section_type: str = Field(max_length=32)
    title: str = Field(max_length=255)
    content: str = Field(default="", sa_type=Text)
    order: int = Field(default=1)
    ai_generated: bool = Field(default=False)
    reviewed: bool = Field(default=False)
    reviewed_by: Optional[str] = Field(default=None, max_length=64)
    reviewed_at: Optional[datetime] = Field(default=None)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})


class OpinionDocument(Base, table=True):
    """Supporting document uploaded to a draft.

    ``extracted_text`` is only populated for plain-text uploads.

    Table: opinion_documents
    """

    __tablename__ = "opinion_documents"

    id: Optional[int] = Field(default=None, primary_key=True)
    draft_id: int = Field(foreign_key="opinion_drafts.id", index=True)
    file_name: str = Field(max_length=255)
    file_path: str = Field(max_length=1024)
    file_size: int
    file_type: str = Field(max_length=128)
    category: str = Field(default="OTHER", max_length=32)
    extracted_text: Optional[str] = Field(default=None, sa_type=Text)
    uploaded_by: str = Field(max_length=64)

    created_at: datetime = Field(default_factory=utc_now)


class OpinionChatMessage(Base, table=True):
    """Message in a draft's assistant conversation.

    Table: opinion_chat_messages
    """

    __tablename__ = "opinion_chat_messages"

    id: Optional[int] = Field(default=None, primary_key=True)
    draft_id: int = Field(foreign_key="opinion_drafts.id", index=True)
    role: str = Field(max_length=16)
    content: str = Field(sa_type=Text)
    user_id: Optional[str] = Field(default=None, max_length=64)

    created_at: datetime = Field(default_factory=utc_now, index=True)

"""
Client acceptance entity models.

Each client has at most one ``ClientAcceptance``: the risk questionnaire that
gates engagement work. Answers are stored per question; question rows are
seeded from the questionnaire definitions on demand.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import List, Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, Text

from ..base import Base, utc_now


class AcceptanceQuestion(Base, table=True):
    """Persisted questionnaire question.

    List-valued attributes are stored as JSON strings.

    Table: acceptance_questions
    """

    __tablename__ = "acceptance_questions"

    id: Optional[int] = Field(default=None, primary_key=True)
    questionnaire_type: str = Field(default="CLIENT_ACCEPTANCE", max_length=32, index=True)
    question_key: str = Field(max_length=64, unique=True, index=True)
    section_key: str = Field(max_length=64, index=True)
    question_text: str = Field(sa_type=Text)
    field_type: str = Field(max_length=32)
    options: str = Field(default="[]", sa_type=Text)
    required: bool = Field(default=True)
    order: int = Field(default=0)
    risk_weight: int = Field(default=0)
    high_risk_answers: str = Field(default="[]", sa_type=Text)
    conditional_display: Optional[str] = Field(default=None, sa_type=Text)

    def get_options_list(self) -> List[str]:
        return json.loads(self.options) if self.options else []

    def get_high_risk_answers_list(self) -> List[str]:
        return json.loads(self.high_risk_answers) if self.high_risk_answers else []


class ClientAcceptance(Base, table=True):
    """Client acceptance questionnaire and its outcome.

    Table: client_acceptances
    """

    __tablename__ = "client_acceptances"

    id: Optional[int] = Field(default=None, primary_key=True)
    client_id: int = Field(foreign_key="clients.id", unique=True, index=True)

    completed_at: Optional[datetime] = Field(default=None)
    completed_by: Optional[str] = Field(default=None, max_length=64)
    approved_at: Optional[datetime] = Field(default=None)
    approved_by: Optional[str] = Field(default=None, max_length=64)
    approval_id: Optional[int] = Field(default=None)

    risk_rating: Optional[str] = Field(default=None, max_length=16)
    overall_risk_score: Optional[int] = Field(default=None)
    risk_summary: Optional[str] = Field(default=None, sa_type=Text)
    valid_until: Optional[datetime] = Field(default=None)

    # Team changes requested with the submission, applied on approval
    pending_partner_code: Optional[str] = Field(default=None, max_length=32)
    pending_manager_code: Optional[str] = Field(default=None, max_length=32)
    pending_incharge_code: Optional[str] = Field(default=None, max_length=32)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None

    @property
    def is_approved(self) -> bool:
        return self.approved_at is not None

    def __repr__(self) -> str:
        return f"ClientAcceptance(client_id={self.client_id}, rating={self.risk_rating})"


class ClientAcceptanceAnswer(Base, table=True):
    """Answer to one acceptance question.

    Table: client_acceptance_answers
    """

    __tablename__ = "client_acceptance_answers"
    __table_args__ = (UniqueConstraint("acceptance_id", "question_id", name="uq_acceptance_answer"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    acceptance_id: int = Field(foreign_key="client_acceptances.id", index=True)
    question_id: int = Field(foreign_key="acceptance_questions.id")
    answer: Optional[str] = Field(default=None, sa_type=Text)
    comment: Optional[str] = Field(default=None, sa_type=Text)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

"""Client acceptance I/O models."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from practiceflow.services.acceptance.questionnaire import QuestionSection
from practiceflow.services.acceptance.risk import SectionRisk


class AnswerInput(BaseModel):
    answer: Optional[str] = None
    comment: Optional[str] = None


class AnswersSave(BaseModel):
    """Draft save of questionnaire answers keyed by question key."""

    answers: Dict[str, AnswerInput]


class AcceptanceSubmit(BaseModel):
    answers: Dict[str, AnswerInput]
    selected_partner_code: Optional[str] = Field(default=None, description="Client partner to apply on approval")
    selected_manager_code: Optional[str] = None
    selected_incharge_code: Optional[str] = None


class AcceptanceInvalidate(BaseModel):
    reason: str = Field(min_length=1)


class AcceptanceStatus(BaseModel):
    exists: bool
    completed: bool = False
    approved: bool = False
    is_valid: bool = False
    risk_rating: Optional[str] = None
    overall_risk_score: Optional[int] = None
    completed_at: Optional[datetime] = None
    completed_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    approved_by: Optional[str] = None
    valid_until: Optional[datetime] = None
    pending_approver_name: Optional[str] = None
    pending_partner_code: Optional[str] = None
    approval_id: Optional[int] = None
    current_step_id: Optional[int] = None
    can_current_user_approve: bool = False


class SavedAnswer(BaseModel):
    answer: Optional[str] = None
    comment: Optional[str] = None


class QuestionnaireResponse(BaseModel):
    sections: List[QuestionSection]
    answers: Dict[str, SavedAnswer]
    completion_percentage: int
    status: AcceptanceStatus


class AcceptanceSubmitResult(BaseModel):
    status: AcceptanceStatus
    risk_summary: Optional[str] = None
    section_risks: List[SectionRisk] = Field(default_factory=list)

"""
Client acceptance questionnaire definitions.

Each question carries a risk weight (0-10); answers listed in
``high_risk_answers`` contribute the full weight to the risk score. A
question with ``conditional_display`` is only shown (and only counts) when
the question it depends on has the required answer.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from practiceflow.core.models.domain.enums import QuestionFieldType

CLIENT_ACCEPTANCE = "CLIENT_ACCEPTANCE"


class ConditionalDisplay(BaseModel):
    depends_on: str = Field(description="question_key of the controlling question")
    required_answer: str


class QuestionDefinition(BaseModel):
    question_key: str
    section_key: str
    question_text: str
    description: Optional[str] = None
    field_type: QuestionFieldType
    options: List[str] = Field(default_factory=list)
    required: bool = True
    order: int
    risk_weight: int = Field(default=0, ge=0, le=10)
    high_risk_answers: List[str] = Field(default_factory=list)
    conditional_display: Optional[ConditionalDisplay] = None
    allow_comment: bool = False

    @property
    def is_scored(self) -> bool:
        return (
            self.field_type not in (QuestionFieldType.PLACEHOLDER, QuestionFieldType.BUTTON)
            and self.risk_weight > 0
        )

    @property
    def is_answerable(self) -> bool:
        return self.field_type not in (QuestionFieldType.PLACEHOLDER, QuestionFieldType.BUTTON)


class QuestionSection(BaseModel):
    key: str
    title: str
    description: Optional[str] = None
    questions: List[QuestionDefinition]


def _radio(key, section, text, options, order, weight, high_risk=(), description=None, required=True):
    return QuestionDefinition(
        question_key=key,
        section_key=section,
        question_text=text,
        description=description,
        field_type=QuestionFieldType.RADIO,
        options=list(options),
        required=required,
        order=order,
        risk_weight=weight,
        high_risk_answers=list(high_risk),
        allow_comment=True,
    )


def _text(key, section, text, order, weight=0, description=None, required=True):
    return QuestionDefinition(
        question_key=key,
        section_key=section,
        question_text=text,
        description=description,
        field_type=QuestionFieldType.TEXTAREA,
        required=required,
        order=order,
        risk_weight=weight,
    )


CLIENT_ACCEPTANCE_QUESTIONNAIRE: List[QuestionSection] = [
    QuestionSection(
        key="client_background",
        title="Client Background and Ownership",
        description="Basic information about the client entity and ownership structure",
        questions=[
            _text(
                "Q1ClientBackground",
                "client_background",
                "What is the nature of the client's business and industry?",
                order=1,
                weight=2,
                description="Brief description of the client's primary business activities and industry sector",
            ),
            _radio(
                "Q2ClientBackground",
                "client_background",
                "Is the client's ownership structure clear and transparent?",
                ["Yes", "No", "Partially"],
                order=2,
                weight=6,
                high_risk=["No", "Partially"],
            ),
            _radio(
                "Q3ClientBackground",
                "client_background",
                "Has the client been operating for more than 3 years?",
                ["Yes", "No"],
                order=3,
                weight=3,
                high_risk=["No"],
            ),
        ],
    ),
    QuestionSection(
        key="client_financial",
        title="Financial Stability and Risk",
        description="Assessment of the client's financial position and stability",
        questions=[
            _radio(
                "Q1ClientFinancial",
                "client_financial",
                "Is the client experiencing financial difficulties or insolvency concerns?",
                ["No", "Some concerns", "Significant concerns"],
                order=1,
                weight=8,
                high_risk=["Significant concerns"],
            ),
            _radio(
                "Q2ClientFinancial",
                "client_financial",
                "Does the client have a history of late payments or fee disputes with service providers?",
                ["No", "Yes", "Unknown"],
                order=2,
                weight=6,
                high_risk=["Yes"],
            ),
            _radio(
                "Q3ClientFinancial",
                "client_financial",
                "Is the client's industry subject to significant economic volatility or decline?",
                ["No", "Moderate volatility", "High volatility"],
                order=3,
                weight=5,
                high_risk=["High volatility"],
            ),
        ],
    ),
    QuestionSection(
        key="client_regulatory",
        title="Regulatory and Compliance Environment",
        description="Assessment of regulatory risks and compliance history",
        questions=[
            _radio(
                "Q1ClientRegulatory",
                "client_regulatory",
                "Is the client subject to significant regulatory oversight or restrictions?",
                ["No", "Yes - specify regulatory body"],
                order=1,
                weight=5,
            ),
            _radio(
                "Q2ClientRegulatory",
                "client_regulatory",
                "Are there any known or suspected regulatory investigations or sanctions involving the client?",
                ["No", "Yes"],
                order=2,
                weight=9,
                high_risk=["Yes"],
            ),
            _radio(
                "Q3ClientRegulatory",
                "client_regulatory",
                "Has the client had issues with tax compliance or disputes with tax authorities?",
                ["No", "Yes - minor", "Yes - significant"],
                order=3,
                weight=7,
                high_risk=["Yes - significant"],
            ),
        ],
    ),
    QuestionSection(
        key="client_reputation",
        title="Reputation and Integrity",
        description="Assessment of client and management integrity and reputation",
        questions=[
            _radio(
                "Q1ClientReputation",
                "client_reputation",
                "Are you aware of any adverse information regarding the integrity of the client's management or owners?",
                ["No", "Yes"],
                order=1,
                weight=10,
                high_risk=["Yes"],
            ),
            _radio(
                "Q2ClientReputation",
                "client_reputation",
                "Has the client been involved in any legal disputes, litigation, or allegations of fraud?",
                ["No", "Yes - minor", "Yes - significant"],
                order=2,
                weight=8,
                high_risk=["Yes - significant"],
            ),
            _radio(
                "Q3ClientReputation",
                "client_reputation",
                "Does the client operate in high-risk sectors (e.g., cash-intensive, cryptocurrency, gambling)?",
                ["No", "Yes"],
                order=3,
                weight=7,
                high_risk=["Yes"],
            ),
            _radio(
                "Q4ClientReputation",
                "client_reputation",
                "Are there concerns about the client's business practices or ethical standards?",
                ["No", "Some concerns", "Significant concerns"],
                order=4,
                weight=8,
                high_risk=["Significant concerns"],
            ),
        ],
    ),
    QuestionSection(
        key="client_relationship",
        title="Client Relationship and Communication",
        description="Assessment of client relationship and communication quality",
        questions=[
            _radio(
                "Q1ClientRelationship",
                "client_relationship",
                "Is management cooperative and responsive to professional advice?",
                ["Yes", "Sometimes", "No"],
                order=1,
                weight=5,
                high_risk=["No"],
            ),
            _radio(
                "Q2ClientRelationship",
                "client_relationship",
                "Has the client frequently changed professional service providers?",
                ["No", "Yes"],
                order=2,
                weight=6,
                high_risk=["Yes"],
            ),
            _radio(
                "Q3ClientRelationship",
                "client_relationship",
                "Are there any concerns about the client's attitude toward compliance or internal controls?",
                ["No", "Some concerns", "Significant concerns"],
                order=3,
                weight=7,
                high_risk=["Significant concerns"],
            ),
        ],
    ),
    QuestionSection(
        key="client_approval",
        title="Recommendation and Approval",
        description="Final assessment and recommendation",
        questions=[
            _radio(
                "Q1ClientApproval",
                "client_approval",
                "Based on the above assessment, do you recommend accepting this client?",
                ["Yes - Accept", "Accept with conditions", "Decline"],
                order=1,
                weight=0,
            ),
            _text(
                "Q2ClientApproval",
                "client_approval",
                "If accepting with conditions or concerns, specify additional safeguards or procedures required",
                order=2,
                required=False,
            ),
        ],
    ),
]

# Titles for section keys used by the engagement-level questionnaires
EXTRA_SECTION_TITLES: Dict[str, str] = {
    "independence": "Independence and Other Considerations",
    "continuance_independence": "Independence and Other Considerations",
    "ac_lite_money_laundering": "Money Laundering and Terrorist Financing",
    "ac_lite_independence": "Independence",
    "ac_lite_kyc": "Know Your Client (KYC)",
    "ac_lite_part_a": "Part A - Major Risk Factors",
    "ac_lite_part_b": "Part B - Normal Risk Factors",
    "ac_lite_criteria": "AC Lite Eligibility Criteria",
}

QUESTIONNAIRES: Dict[str, List[QuestionSection]] = {
    CLIENT_ACCEPTANCE: CLIENT_ACCEPTANCE_QUESTIONNAIRE,
}


def get_questionnaire(questionnaire_type: str = CLIENT_ACCEPTANCE) -> List[QuestionSection]:
    return QUESTIONNAIRES[questionnaire_type]


def all_questions(questionnaire_type: str = CLIENT_ACCEPTANCE) -> List[QuestionDefinition]:
    return [question for section in get_questionnaire(questionnaire_type) for question in section.questions]


def section_title(section_key: str) -> str:
    """Human-readable title for a section key, falling back to the key itself."""
    for sections in QUESTIONNAIRES.values():
        for section in sections:
            if section.key == section_key:
                return section.title
    return EXTRA_SECTION_TITLES.get(section_key, section_key)

"""
Risk scoring for acceptance questionnaires.

Scores are percentages of the possible risk weight: a scored question
contributes its full weight when its answer is one of the question's
high-risk answers. Ratings are LOW up to 30, MEDIUM up to 60, HIGH above.
"""

from __future__ import annotations

import math
from typing import Dict, List, Mapping, Optional, Sequence

from pydantic import BaseModel

from practiceflow.core.models.domain.enums import RiskRating

from .questionnaire import QuestionDefinition, section_title

LOW_THRESHOLD = 30
MEDIUM_THRESHOLD = 60


class SectionRisk(BaseModel):
    section_key: str
    section_title: str
    risk_score: int
    risk_rating: RiskRating
    question_count: int
    high_risk_count: int


class HighRiskQuestion(BaseModel):
    question_key: str
    question_text: str
    answer: str
    risk_weight: int
    section_key: str


class RiskAssessment(BaseModel):
    overall_risk_score: int
    risk_rating: RiskRating
    risk_summary: str
    section_risks: List[SectionRisk]
    high_risk_questions: List[HighRiskQuestion]


class RequiredCheck(BaseModel):
    is_valid: bool
    missing_questions: List[str]


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def percentage(actual: float, possible: float) -> int:
    return round_half_up(actual / possible * 100) if possible > 0 else 0


def get_risk_rating(score: int) -> RiskRating:
    if score <= LOW_THRESHOLD:
        return RiskRating.LOW
    if score <= MEDIUM_THRESHOLD:
        return RiskRating.MEDIUM
    return RiskRating.HIGH


def is_high_risk(question: QuestionDefinition, answer: Optional[str]) -> bool:
    """Whether the trimmed answer matches a high-risk answer, ignoring case."""
    if not answer or not question.high_risk_answers:
        return False
    normalized = answer.strip().lower()
    return any(candidate.lower() == normalized for candidate in question.high_risk_answers)


def is_visible(question: QuestionDefinition, answers: Mapping[str, str]) -> bool:
    condition = question.conditional_display
    if condition is None:
        return True
    return answers.get(condition.depends_on) == condition.required_answer


def _has_answer(answers: Mapping[str, str], key: str) -> bool:
    value = answers.get(key)
    return bool(value and value.strip())


def calculate_section_risks(
    questions: Sequence[QuestionDefinition], answers: Mapping[str, str]
) -> List[SectionRisk]:
    sections: Dict[str, List[QuestionDefinition]] = {}
    for question in questions:
        if question.is_scored:
            sections.setdefault(question.section_key, []).append(question)

    risks = []
    for section_key, section_questions in sections.items():
        possible = sum(q.risk_weight for q in section_questions)
        flagged = [q for q in section_questions if is_high_risk(q, answers.get(q.question_key))]
        score = percentage(sum(q.risk_weight for q in flagged), possible)
        risks.append(
            SectionRisk(
                section_key=section_key,
                section_title=section_title(section_key),
                risk_score=score,
                risk_rating=get_risk_rating(score),
                question_count=len(section_questions),
                high_risk_count=len(flagged),
            )
        )
    # stable sort keeps questionnaire order for ties
    return sorted(risks, key=lambda risk: risk.risk_score, reverse=True)


def calculate_risk_assessment(
    questions: Sequence[QuestionDefinition], answers: Mapping[str, str]
) -> RiskAssessment:
    """Score ``answers`` (question key to answer text) against ``questions``."""
    possible = 0
    actual = 0
    high_risk_questions: List[HighRiskQuestion] = []

    for question in questions:
        if not question.is_scored:
            continue
        answer = answers.get(question.question_key)
        possible += question.risk_weight
        if is_high_risk(question, answer):
            actual += question.risk_weight
            high_risk_questions.append(
                HighRiskQuestion(
                    question_key=question.question_key,
                    question_text=question.question_text,
                    answer=answer,
                    risk_weight=question.risk_weight,
                    section_key=question.section_key,
                )
            )

    score = percentage(actual, possible)
    rating = get_risk_rating(score)
    section_risks = calculate_section_risks(questions, answers)
    return RiskAssessment(
        overall_risk_score=score,
        risk_rating=rating,
        risk_summary=generate_risk_summary(rating, score, len(high_risk_questions), section_risks),
        section_risks=section_risks,
        high_risk_questions=high_risk_questions,
    )


RATING_OVERVIEW = {
    RiskRating.LOW: "This engagement presents a low risk profile. "
    "Standard acceptance procedures and safeguards should be sufficient.",
    RiskRating.MEDIUM: "This engagement presents a medium risk profile. "
    "Enhanced safeguards and procedures are recommended.",
    RiskRating.HIGH: "This engagement presents a high risk profile. "
    "Comprehensive safeguards, senior review, and risk management approval are required.",
}

RECOMMENDATIONS = {
    RiskRating.HIGH: [
        "Obtain Risk Management Committee approval before proceeding",
        "Implement enhanced safeguards and additional procedures",
        "Assign experienced senior staff and ensure adequate resources",
        "Consider Engagement Quality Review (EQR) requirements",
        "Document all safeguards and risk mitigation measures",
    ],
    RiskRating.MEDIUM: [
        "Review and document appropriate safeguards for each risk area",
        "Consider enhanced quality control procedures",
        "Ensure adequate staffing and resources",
        "Partner/senior management review recommended",
    ],
    RiskRating.LOW: [
        "Apply standard acceptance and quality control procedures",
        "Ensure compliance with firm policies and professional standards",
        "Document acceptance decision and any relevant considerations",
    ],
}


def generate_risk_summary(
    rating: RiskRating, score: int, high_risk_count: int, section_risks: Sequence[SectionRisk]
) -> str:
    """Markdown summary of an assessment."""
    lines = [f"Overall Risk Rating: {rating.value} ({score}%)", "", RATING_OVERVIEW[rating], ""]

    if high_risk_count > 0:
        plural = "s" if high_risk_count > 1 else ""
        lines += [f"**Risk Factors Identified:** {high_risk_count} high-risk indicator{plural} detected.", ""]

    high_sections = [s for s in section_risks if s.risk_rating == RiskRating.HIGH]
    medium_sections = [s for s in section_risks if s.risk_rating == RiskRating.MEDIUM]
    if high_sections:
        lines.append("**High Risk Areas:**")
        for s in high_sections:
            lines.append(f"- {s.section_title}: {s.high_risk_count} of {s.question_count} questions indicate high risk")
        lines.append("")
    if medium_sections:
        lines.append("**Medium Risk Areas:**")
        for s in medium_sections:
            lines.append(f"- {s.section_title}: {s.high_risk_count} of {s.question_count} questions indicate risk")
        lines.append("")

    lines.append("**Recommendations:**")
    lines += [f"- {item}" for item in RECOMMENDATIONS[rating]]
    return "\n".join(lines)


def validate_required_questions(
    questions: Sequence[QuestionDefinition], answers: Mapping[str, str]
) -> RequiredCheck:
    missing = [
        question.question_key
        for question in questions
        if question.required
        and question.is_answerable
        and is_visible(question, answers)
        and not _has_answer(answers, question.question_key)
    ]
    return RequiredCheck(is_valid=not missing, missing_questions=missing)


def calculate_completion_percentage(questions: Sequence[QuestionDefinition], answers: Mapping[str, str]) -> int:
    """Share of visible required questions that have a non-blank answer; 100 when none are visible."""
    visible = [q for q in questions if q.required and q.is_answerable and is_visible(q, answers)]
    if not visible:
        return 100
    answered = sum(1 for q in visible if _has_answer(answers, q.question_key))
    return percentage(answered, len(visible))

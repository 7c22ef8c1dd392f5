"""
Guided section generation.

Each section type carries a fixed list of guiding questions. The generation
state holds the questions asked so far with their answers and is returned to
the client after every step, so nothing about an in-progress section is kept
on the server.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from practiceflow.core.errors import ValidationError
from practiceflow.core.models.io.opinions import QuestionAnswer, SectionGenerationState


@dataclass(frozen=True)
class SectionGuide:
    title: str
    questions: tuple[str, ...]
    instructions: str


SECTION_GUIDES: Dict[str, SectionGuide] = {
    "facts": SectionGuide(
        title="Facts",
        questions=(
            "What are the key factual circumstances that give rise to this tax matter?",
            "Who are the parties involved and how are they related?",
            "What are the relevant dates, amounts and transactions?",
        ),
        instructions="Set out the relevant facts neutrally and in chronological order.",
    ),
    "issue": SectionGuide(
        title="Issue",
        questions=(
            "What specific tax question or questions need to be addressed in this opinion?",
            "Is there an assessment, dispute or deadline driving the question?",
        ),
        instructions="State each tax issue as a precise question.",
    ),
    "law": SectionGuide(
        title="Law",
        questions=(
            "Which sections of the Income Tax Act or other legislation are most relevant?",
            "Are there regulations, interpretation notes or rulings to consider?",
            "Which court decisions or precedents bear on the matter?",
        ),
        instructions="Summarise the applicable law without inventing sections or case law.",
    ),
    "analysis": SectionGuide(
        title="Analysis",
        questions=(
            "What is your preliminary view on how the relevant provisions apply to these facts?",
            "What are the strongest arguments against that view?",
            "Which facts are decisive, and are any of them uncertain?",
            "What risks or alternative positions should the client be aware of?",
        ),
        instructions="Apply the law to the facts, weighing arguments on both sides.",
    ),
    "conclusion": SectionGuide(
        title="Conclusion",
        questions=(
            "Based on the analysis, what is your conclusion on the tax treatment or position?",
            "What do you recommend the client does next?",
        ),
        instructions="Give a clear conclusion and practical recommendations.",
    ),
    "custom": SectionGuide(
        title="Custom",
        questions=(
            "What information or analysis should this section contain?",
            "Is there anything specific the section must mention or avoid?",
        ),
        instructions="Write the section as described by the answers.",
    ),
}

SECTION_ALIASES = {"application": "analysis"}


def get_guide(section_type: str) -> SectionGuide:
    key = section_type.strip().lower()
    return SECTION_GUIDES.get(SECTION_ALIASES.get(key, key), SECTION_GUIDES["custom"])


def section_title(state: SectionGenerationState) -> str:
    if state.custom_title:
        return state.custom_title
    key = state.section_type.strip().lower()
    if key in SECTION_GUIDES or key in SECTION_ALIASES:
        return get_guide(key).title
    return state.section_type


def start_generation(section_type: str, custom_title: Optional[str] = None) -> tuple[str, SectionGenerationState]:
    """First question and a fresh state for a section type."""
    if not section_type or not section_type.strip():
        raise ValidationError("Section type required")
    guide = get_guide(section_type)
    question = guide.questions[0]
    if custom_title and guide is SECTION_GUIDES["custom"]:
        question = f'For the "{custom_title}" section: {question[0].lower()}{question[1:]}'
    state = SectionGenerationState(
        section_type=section_type.strip(),
        custom_title=custom_title,
        questions=[QuestionAnswer(question=question)],
    )
    return question, state


def record_answer(state: SectionGenerationState, answer: str) -> tuple[Optional[str], SectionGenerationState]:
    """Store the answer to the current question and move on.

    Returns the next question, or ``None`` once every guiding question has
    been answered.
    """
    if state.is_complete:
        raise ValidationError("All questions for this section have been answered")
    if not answer or not answer.strip():
        raise ValidationError("State and answer required")
    if state.current_question_index >= len(state.questions):
        raise ValidationError("Generation state has no open question")

    state = state.model_copy(deep=True)
    state.questions[state.current_question_index].answer = answer.strip()
    state.current_question_index += 1

    guide = get_guide(state.section_type)
    if state.current_question_index < len(guide.questions):
        question = guide.questions[state.current_question_index]
        state.questions.append(QuestionAnswer(question=question))
        return question, state

    state.is_complete = True
    return None, state


def answered(state: SectionGenerationState) -> List[QuestionAnswer]:
    return [item for item in state.questions if item.answer]


def template_content(state: SectionGenerationState) -> str:
    """Section text assembled from the answers alone."""
    paragraphs = [item.answer for item in answered(state)]
    if not paragraphs:
        return ""
    return "\n\n".join(paragraphs)


def build_generation_prompt(
    state: SectionGenerationState,
    previous_sections: Sequence[tuple[str, str]],
    document_excerpts: Sequence[tuple[str, str]],
) -> str:
    guide = get_guide(state.section_type)
    parts = [f"Write the '{section_title(state)}' section of a tax opinion.", guide.instructions, ""]
    parts.append("Answers from the drafting interview:")
    for item in answered(state):
        parts.append(f"Q: {item.question}\nA: {item.answer}")
    if previous_sections:
        parts.append("\nSections already drafted:")
        for title, content in previous_sections:
            parts.append(f"## {title}\n{content}")
    if document_excerpts:
        parts.append("\nSupporting document excerpts:")
        for file_name, excerpt in document_excerpts:
            parts.append(f"[{file_name}]\n{excerpt}")
    parts.append("\nReturn only the section body in markdown, without the heading.")
    return "\n".join(parts)

"""AI-assisted tax opinion drafting."""

from .assistant import DraftingAssistant
from .documents import DocumentStore
from .sections import SECTION_GUIDES, record_answer, start_generation
from .service import OpinionService

__all__ = [
    "DocumentStore",
    "DraftingAssistant",
    "OpinionService",
    "SECTION_GUIDES",
    "record_answer",
    "start_generation",
]

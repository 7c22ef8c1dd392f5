"""Generic approval routing."""

from .conditions import evaluate_condition, resolve_path
from .registry import DEFAULT_ROUTES, WORKFLOW_REGISTRY, get_workflow
from .service import ApprovalService, is_approval_complete

__all__ = [
    "ApprovalService",
    "DEFAULT_ROUTES",
    "WORKFLOW_REGISTRY",
    "evaluate_condition",
    "get_workflow",
    "is_approval_complete",
    "resolve_path",
]

"""Domain enums for practice management models."""

from __future__ import annotations

from enum import Enum


class ServiceLineRole(str, Enum):
    """
    Role ladder used for service-line grants and task team membership.

    Ranks are defined in ``ROLE_RANKS``; higher ranks include lower ones.
    """

    ADMINISTRATOR = "ADMINISTRATOR"
    PARTNER = "PARTNER"
    MANAGER = "MANAGER"
    SUPERVISOR = "SUPERVISOR"
    USER = "USER"
    VIEWER = "VIEWER"


ROLE_RANKS: dict[str, int] = {
    ServiceLineRole.ADMINISTRATOR.value: 6,
    ServiceLineRole.PARTNER.value: 5,
    ServiceLineRole.MANAGER.value: 4,
    ServiceLineRole.SUPERVISOR.value: 3,
    ServiceLineRole.USER.value: 2,
    ServiceLineRole.VIEWER.value: 1,
}


class MasterServiceLine(str, Enum):
    TAX = "TAX"
    AUDIT = "AUDIT"
    ACCOUNTING = "ACCOUNTING"
    ADVISORY = "ADVISORY"


class TaskStage(str, Enum):
    """Workflow stage of a task. ``ARCHIVED`` is a board column, never a recorded stage."""

    ENGAGE = "ENGAGE"
    IN_PROGRESS = "IN_PROGRESS"
    UNDER_REVIEW = "UNDER_REVIEW"
    COMPLETED = "COMPLETED"
    ARCHIVED = "ARCHIVED"


WORKFLOW_STAGES: tuple[TaskStage, ...] = (
    TaskStage.ENGAGE,
    TaskStage.IN_PROGRESS,
    TaskStage.UNDER_REVIEW,
    TaskStage.COMPLETED,
)


class TaskAccessType(str, Enum):
    SYSTEM_ADMIN = "SYSTEM_ADMIN"
    SERVICE_LINE_ADMIN = "SERVICE_LINE_ADMIN"
    TASK_MEMBER = "TASK_MEMBER"
    NO_ACCESS = "NO_ACCESS"


class NonClientEventType(str, Enum):
    TRAINING = "TRAINING"
    ANNUAL_LEAVE = "ANNUAL_LEAVE"
    SICK_LEAVE = "SICK_LEAVE"
    PUBLIC_HOLIDAY = "PUBLIC_HOLIDAY"
    PERSONAL = "PERSONAL"
    ADMINISTRATIVE = "ADMINISTRATIVE"


class QuestionFieldType(str, Enum):
    RADIO = "RADIO"
    TEXTAREA = "TEXTAREA"
    SELECT = "SELECT"
    FILE_UPLOAD = "FILE_UPLOAD"
    BUTTON = "BUTTON"
    PLACEHOLDER = "PLACEHOLDER"


class RiskRating(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class ApprovalStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class StepStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    SKIPPED = "SKIPPED"


class StepType(str, Enum):
    USER = "USER"
    ROLE = "ROLE"
    CONDITIONAL = "CONDITIONAL"


class ApprovalPriority(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


PRIORITY_ORDER: dict[str, int] = {
    ApprovalPriority.HIGH.value: 3,
    ApprovalPriority.MEDIUM.value: 2,
    ApprovalPriority.LOW.value: 1,
}


class ChangeType(str, Enum):
    PARTNER = "PARTNER"
    MANAGER = "MANAGER"


class ChangeRequestStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class WorkflowType(str, Enum):
    CHANGE_REQUEST = "CHANGE_REQUEST"
    CLIENT_ACCEPTANCE = "CLIENT_ACCEPTANCE"
    ACCEPTANCE = "ACCEPTANCE"
    CONTINUANCE = "CONTINUANCE"
    ENGAGEMENT_LETTER = "ENGAGEMENT_LETTER"
    DPA = "DPA"


class OpinionStatus(str, Enum):
    DRAFT = "DRAFT"
    UNDER_REVIEW = "UNDER_REVIEW"
    FINAL = "FINAL"


class ChecklistStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


class SarsStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    SUBMITTED = "SUBMITTED"
    RESOLVED = "RESOLVED"


class NotificationType(str, Enum):
    APPROVAL_ASSIGNED = "APPROVAL_ASSIGNED"
    APPROVAL_COMPLETED = "APPROVAL_COMPLETED"
    APPROVAL_REJECTED = "APPROVAL_REJECTED"
    TASK_ASSIGNED = "TASK_ASSIGNED"
    TASK_STAGE_CHANGED = "TASK_STAGE_CHANGED"
    ACCEPTANCE_INVALIDATED = "ACCEPTANCE_INVALIDATED"
    CLIENT_TEAM_CHANGED = "CLIENT_TEAM_CHANGED"

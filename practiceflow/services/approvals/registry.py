"""
Workflow registry.

Describes each workflow type that can be routed through approvals: its
display name, the route used when none is named, and how to build a display
title and description from the workflow's data.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional

from practiceflow.core.errors import ValidationError
from practiceflow.core.models.domain.enums import WorkflowType

Builder = Callable[[Mapping[str, Any]], str]


def _client_name(data: Mapping[str, Any], default: str = "Unknown") -> str:
    return data.get("client_name") or data.get("client_code") or default


def _task_name(data: Mapping[str, Any], default: str = "Unknown Task") -> str:
    return data.get("task_desc") or data.get("task_code") or default


def _change_request_title(data: Mapping[str, Any]) -> str:
    change = "Client Partner" if data.get("change_type") == "PARTNER" else "Client Manager"
    return f"{change} Change for {_client_name(data)}"


def _change_request_description(data: Mapping[str, Any]) -> str:
    current = data.get("current_employee_name") or data.get("current_employee_code")
    proposed = data.get("proposed_employee_name") or data.get("proposed_employee_code")
    return f"Change from {current} to {proposed}"


def _client_acceptance_description(data: Mapping[str, Any]) -> str:
    rating = data.get("risk_rating") or "Pending"
    score = data.get("risk_score")
    suffix = f" ({float(score):.1f}%)" if score else ""
    return f"Risk Rating: {rating}{suffix}"


@dataclass(frozen=True)
class WorkflowRegistryEntry:
    name: str
    default_route: str
    title: Builder
    description: Optional[Builder] = None
    # Approvals are opened by the owning service and applied by a completion handler
    managed: bool = False


WORKFLOW_REGISTRY: Dict[str, WorkflowRegistryEntry] = {
    WorkflowType.CHANGE_REQUEST.value: WorkflowRegistryEntry(
        name="Client Partner/Manager Change",
        default_route="dual-approval",
        title=_change_request_title,
        description=_change_request_description,
        managed=True,
    ),
    WorkflowType.CLIENT_ACCEPTANCE.value: WorkflowRegistryEntry(
        name="Client Acceptance",
        default_route="client-partner-approval",
        title=lambda data: f"Client Acceptance for {_client_name(data, 'Unknown Client')}",
        description=_client_acceptance_description,
        managed=True,
    ),
    WorkflowType.ACCEPTANCE.value: WorkflowRegistryEntry(
        name="Engagement Acceptance",
        default_route="partner-approval",
        title=lambda data: f"Engagement Acceptance for {_task_name(data)}",
        description=lambda data: f"Risk Rating: {data.get('risk_rating') or 'Unknown'}",
    ),
    WorkflowType.CONTINUANCE.value: WorkflowRegistryEntry(
        name="Client Continuance",
        default_route="partner-approval",
        title=lambda data: "Client Continuance Review",
        description=lambda data: "Continuance assessment for existing client",
    ),
    WorkflowType.ENGAGEMENT_LETTER.value: WorkflowRegistryEntry(
        name="Engagement Letter",
        default_route="partner-approval",
        title=lambda data: f"Engagement Letter for {_task_name(data)}",
        description=lambda data: f"Client: {_client_name(data)}",
    ),
    WorkflowType.DPA.value: WorkflowRegistryEntry(
        name="Data Processing Agreement",
        default_route="partner-approval",
        title=lambda data: f"DPA for {_task_name(data)}",
        description=lambda data: f"Client: {_client_name(data)}",
    ),
}


def get_workflow(workflow_type: str) -> WorkflowRegistryEntry:
    entry = WORKFLOW_REGISTRY.get(workflow_type)
    if entry is None:
        raise ValidationError(f"Unknown workflow type: {workflow_type}")
    return entry


def display_title(workflow_type: str, data: Mapping[str, Any]) -> str:
    return get_workflow(workflow_type).title(data)


def display_description(workflow_type: str, data: Mapping[str, Any]) -> Optional[str]:
    entry = get_workflow(workflow_type)
    return entry.description(data) if entry.description else None


def _partner_route(workflow_type: str) -> Dict[str, Any]:
    return {
        "workflow_type": workflow_type,
        "route_name": "partner-approval",
        "description": "Partner sign-off, with an administrator review for high-risk work",
        "is_default": True,
        "config": {
            "requires_all_steps": True,
            "steps": [
                {"step_order": 1, "step_type": "ROLE", "is_required": True, "assigned_to_role": "PARTNER"},
                {
                    "step_order": 2,
                    "step_type": "CONDITIONAL",
                    "is_required": True,
                    "assigned_to_role": "ADMINISTRATOR",
                    "condition": "context.risk_rating == 'HIGH'",
                },
            ],
        },
    }


DEFAULT_ROUTES: List[Dict[str, Any]] = [
    {
        "workflow_type": WorkflowType.CHANGE_REQUEST.value,
        "route_name": "dual-approval",
        "description": "Current employee (when still active) and proposed employee both approve",
        "is_default": True,
        "config": {
            "requires_all_steps": True,
            "steps": [
                {
                    "step_order": 1,
                    "step_type": "USER",
                    "is_required": True,
                    "assigned_to_user_id_path": "current_employee_code",
                    "condition": "context.requires_dual_approval != false",
                },
                {
                    "step_order": 2,
                    "step_type": "USER",
                    "is_required": True,
                    "assigned_to_user_id_path": "proposed_employee_code",
                },
            ],
        },
    },
    {
        "workflow_type": WorkflowType.CLIENT_ACCEPTANCE.value,
        "route_name": "client-partner-approval",
        "description": "Approval by the client partner selected on submission",
        "is_default": True,
        "config": {
            "requires_all_steps": True,
            "steps": [
                {
                    "step_order": 1,
                    "step_type": "USER",
                    "is_required": True,
                    "assigned_to_user_id_path": "client_partner_code",
                }
            ],
        },
    },
    _partner_route(WorkflowType.ACCEPTANCE.value),
    _partner_route(WorkflowType.CONTINUANCE.value),
    _partner_route(WorkflowType.ENGAGEMENT_LETTER.value),
    _partner_route(WorkflowType.DPA.value),
]

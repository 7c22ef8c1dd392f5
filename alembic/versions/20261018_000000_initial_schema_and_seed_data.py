"""Initial schema and seed data for PracticeFlow

Revision ID: 20261018_000000
Revises: None
Create Date: 2026-10-18 00:00:00.000000

This is the initial migration that creates all tables and seeds default data
for the PracticeFlow service. This includes:
- Users, employees, service lines and role grants
- Clients, partner/manager change requests, tasks, stage history, team
  allocations and non-client allocations
- Client acceptance questionnaire and answers
- Generic approval routes, approvals, steps and delegations
- Opinion drafts, sections, documents and chat
- Compliance checklist, SARS responses, notifications and preferences
- Default approval routes for every workflow type

Revision format: YYYYMMDD_HHMMSS_description

"""

import json
from datetime import datetime
from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "20261018_000000"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps(with_updated: bool = True) -> list:
    columns = [sa.Column("created_at", sa.DateTime(), nullable=False)]
    if with_updated:
        columns.append(sa.Column("updated_at", sa.DateTime(), nullable=False))
    return columns


def upgrade() -> None:
    """Create all tables and seed initial data."""

    op.create_table(
        "users",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("is_system_admin", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "employees",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("emp_code", sa.String(32), nullable=False),
        sa.Column("emp_name", sa.String(255), nullable=False),
        sa.Column("win_logon", sa.String(255), nullable=True),
        sa.Column("job_grade", sa.String(32), nullable=True),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_employees_emp_code", "employees", ["emp_code"], unique=True)
    op.create_index("ix_employees_win_logon", "employees", ["win_logon"])

    op.create_table(
        "service_lines",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("serv_line_code", sa.String(32), nullable=False),
        sa.Column("serv_line_desc", sa.String(255), nullable=False),
        sa.Column("sub_group", sa.String(32), nullable=False),
        sa.Column("sub_group_desc", sa.String(255), nullable=False),
        sa.Column("master_code", sa.String(32), nullable=False),
        sa.Column("master_desc", sa.String(255), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_service_lines_serv_line_code", "service_lines", ["serv_line_code"], unique=True)
    op.create_index("ix_service_lines_sub_group", "service_lines", ["sub_group"])
    op.create_index("ix_service_lines_master_code", "service_lines", ["master_code"])

    op.create_table(
        "service_line_users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(64), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("sub_group", sa.String(32), nullable=False),
        sa.Column("master_code", sa.String(32), nullable=False),
        sa.Column("role", sa.String(32), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "sub_group", name="uq_service_line_user"),
    )
    op.create_index("ix_service_line_users_user_id", "service_line_users", ["user_id"])
    op.create_index("ix_service_line_users_sub_group", "service_line_users", ["sub_group"])

    op.create_table(
        "clients",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("client_code", sa.String(32), nullable=False),
        sa.Column("client_name", sa.String(255), nullable=False),
        sa.Column("group_code", sa.String(32), nullable=True),
        sa.Column("group_desc", sa.String(255), nullable=True),
        sa.Column("partner_code", sa.String(32), nullable=True),
        sa.Column("manager_code", sa.String(32), nullable=True),
        sa.Column("incharge_code", sa.String(32), nullable=True),
        sa.Column("industry", sa.String(128), nullable=True),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_clients_client_code", "clients", ["client_code"], unique=True)
    op.create_index("ix_clients_client_name", "clients", ["client_name"])
    op.create_index("ix_clients_group_code", "clients", ["group_code"])
    op.create_index("ix_clients_partner_code", "clients", ["partner_code"])
    op.create_index("ix_clients_manager_code", "clients", ["manager_code"])

    op.create_table(
        "tasks",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("task_code", sa.String(32), nullable=False),
        sa.Column("task_desc", sa.String(255), nullable=False),
        sa.Column("client_id", sa.Integer(), sa.ForeignKey("clients.id"), nullable=True),
        sa.Column("serv_line_code", sa.String(32), nullable=False),
        sa.Column("partner_code", sa.String(32), nullable=True),
        sa.Column("manager_code", sa.String(32), nullable=True),
        sa.Column("budget_hours", sa.Float(), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_by", sa.String(64), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_tasks_task_code", "tasks", ["task_code"], unique=True)
    for column in ("client_id", "serv_line_code", "partner_code", "manager_code", "active", "updated_at"):
        op.create_index(f"ix_tasks_{column}", "tasks", [column])

    op.create_table(
        "task_stage_history",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("task_id", sa.Integer(), sa.ForeignKey("tasks.id"), nullable=False),
        sa.Column("stage", sa.String(32), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("moved_by", sa.String(64), nullable=True),
        *_timestamps(with_updated=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_task_stage_history_task_id", "task_stage_history", ["task_id"])
    op.create_index("ix_task_stage_history_created_at", "task_stage_history", ["created_at"])

    op.create_table(
        "task_team",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("task_id", sa.Integer(), sa.ForeignKey("tasks.id"), nullable=False),
        sa.Column("user_id", sa.String(64), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("role", sa.String(32), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("allocated_hours", sa.Float(), nullable=True),
        sa.Column("allocated_percentage", sa.Integer(), nullable=True),
        sa.Column("actual_hours", sa.Float(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("task_id", "user_id", name="uq_task_team_member"),
    )
    op.create_index("ix_task_team_task_id", "task_team", ["task_id"])
    op.create_index("ix_task_team_user_id", "task_team", ["user_id"])

    op.create_table(
        "non_client_allocations",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(64), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("event_type", sa.String(32), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("allocated_hours", sa.Float(), nullable=False, server_default="0"),
        sa.Column("allocated_percentage", sa.Integer(), nullable=False, server_default="100"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_by", sa.String(64), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_non_client_allocations_user_id", "non_client_allocations", ["user_id"])

    op.create_table(
        "client_change_requests",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("client_id", sa.Integer(), sa.ForeignKey("clients.id"), nullable=False),
        sa.Column("change_type", sa.String(16), nullable=False),
        sa.Column("current_employee_code", sa.String(32), nullable=True),
        sa.Column("current_employee_name", sa.String(255), nullable=True),
        sa.Column("proposed_employee_code", sa.String(32), nullable=False),
        sa.Column("proposed_employee_name", sa.String(255), nullable=True),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default="PENDING"),
        sa.Column("requires_dual_approval", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("requested_by", sa.String(64), nullable=False),
        sa.Column("approval_id", sa.Integer(), nullable=True),
        sa.Column("resolved_by", sa.String(64), nullable=True),
        sa.Column("resolved_at", sa.DateTime(), nullable=True),
        sa.Column("resolution_comment", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_client_change_requests_client_id", "client_change_requests", ["client_id"])
    op.create_index("ix_client_change_requests_status", "client_change_requests", ["status"])

    op.create_table(
        "acceptance_questions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("questionnaire_type", sa.String(32), nullable=False),
        sa.Column("question_key", sa.String(64), nullable=False),
        sa.Column("section_key", sa.String(64), nullable=False),
        sa.Column("question_text", sa.Text(), nullable=False),
        sa.Column("field_type", sa.String(32), nullable=False),
        sa.Column("options", sa.Text(), nullable=False, server_default="[]"),
        sa.Column("required", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("risk_weight", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("high_risk_answers", sa.Text(), nullable=False, server_default="[]"),
        sa.Column("conditional_display", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_acceptance_questions_questionnaire_type", "acceptance_questions", ["questionnaire_type"])
    op.create_index("ix_acceptance_questions_question_key", "acceptance_questions", ["question_key"], unique=True)
    op.create_index("ix_acceptance_questions_section_key", "acceptance_questions", ["section_key"])

    op.create_table(
        "client_acceptances",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("client_id", sa.Integer(), sa.ForeignKey("clients.id"), nullable=False),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.Column("completed_by", sa.String(64), nullable=True),
        sa.Column("approved_at", sa.DateTime(), nullable=True),
        sa.Column("approved_by", sa.String(64), nullable=True),
        sa.Column("approval_id", sa.Integer(), nullable=True),
        sa.Column("risk_rating", sa.String(16), nullable=True),
        sa.Column("overall_risk_score", sa.Integer(), nullable=True),
        sa.Column("risk_summary", sa.Text(), nullable=True),
        sa.Column("valid_until", sa.DateTime(), nullable=True),
        sa.Column("pending_partner_code", sa.String(32), nullable=True),
        sa.Column("pending_manager_code", sa.String(32), nullable=True),
        sa.Column("pending_incharge_code", sa.String(32), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_client_acceptances_client_id", "client_acceptances", ["client_id"], unique=True)

    op.create_table(
        "client_acceptance_answers",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("acceptance_id", sa.Integer(), sa.ForeignKey("client_acceptances.id"), nullable=False),
        sa.Column("question_id", sa.Integer(), sa.ForeignKey("acceptance_questions.id"), nullable=False),
        sa.Column("answer", sa.Text(), nullable=True),
        sa.Column("comment", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("acceptance_id", "question_id", name="uq_acceptance_answer"),
    )
    op.create_index("ix_client_acceptance_answers_acceptance_id", "client_acceptance_answers", ["acceptance_id"])

    op.create_table(
        "approval_routes",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("workflow_type", sa.String(32), nullable=False),
        sa.Column("route_name", sa.String(64), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("route_config", sa.Text(), nullable=False),
        sa.Column("is_default", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("workflow_type", "route_name", name="uq_approval_route_name"),
    )
    op.create_index("ix_approval_routes_workflow_type", "approval_routes", ["workflow_type"])
    op.create_index("ix_approval_routes_route_name", "approval_routes", ["route_name"])

    op.create_table(
        "approvals",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("workflow_type", sa.String(32), nullable=False),
        sa.Column("workflow_id", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("priority", sa.String(16), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("requested_by", sa.String(64), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("route_id", sa.Integer(), sa.ForeignKey("approval_routes.id"), nullable=True),
        sa.Column("current_step_id", sa.Integer(), nullable=True),
        sa.Column("requires_all_steps", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("context", sa.Text(), nullable=False, server_default="{}"),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.Column("completed_by", sa.String(64), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    for column in ("workflow_type", "workflow_id", "status", "created_at"):
        op.create_index(f"ix_approvals_{column}", "approvals", [column])

    op.create_table(
        "approval_steps",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("approval_id", sa.Integer(), sa.ForeignKey("approvals.id"), nullable=False),
        sa.Column("step_order", sa.Integer(), nullable=False),
        sa.Column("step_type", sa.String(16), nullable=False),
        sa.Column("is_required", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("assigned_to_user_id", sa.String(64), nullable=True),
        sa.Column("assigned_to_role", sa.String(32), nullable=True),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("approved_at", sa.DateTime(), nullable=True),
        sa.Column("approved_by", sa.String(64), nullable=True),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column("is_delegated", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("delegated_to_user_id", sa.String(64), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    for column in ("approval_id", "assigned_to_user_id", "status"):
        op.create_index(f"ix_approval_steps_{column}", "approval_steps", [column])

    op.create_table(
        "approval_delegations",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("from_user_id", sa.String(64), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("to_user_id", sa.String(64), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("workflow_type", sa.String(32), nullable=True),
        sa.Column("start_date", sa.DateTime(), nullable=False),
        sa.Column("end_date", sa.DateTime(), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(with_updated=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_approval_delegations_from_user_id", "approval_delegations", ["from_user_id"])
    op.create_index("ix_approval_delegations_to_user_id", "approval_delegations", ["to_user_id"])

    op.create_table(
        "opinion_drafts",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("task_id", sa.Integer(), sa.ForeignKey("tasks.id"), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_by", sa.String(64), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_opinion_drafts_task_id", "opinion_drafts", ["task_id"])

    op.create_table(
        "opinion_sections",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("draft_id", sa.Integer(), sa.ForeignKey("opinion_drafts.id"), nullable=False),
        sa.Column("section_type", sa.String(32), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("content", sa.Text(), nullable=False, server_default=""),
        sa.Column("order", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("ai_generated", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("reviewed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("reviewed_by", sa.String(64), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_opinion_sections_draft_id", "opinion_sections", ["draft_id"])

    op.create_table(
        "opinion_documents",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("draft_id", sa.Integer(), sa.ForeignKey("opinion_drafts.id"), nullable=False),
        sa.Column("file_name", sa.String(255), nullable=False),
        sa.Column("file_path", sa.String(1024), nullable=False),
        sa.Column("file_size", sa.Integer(), nullable=False),
        sa.Column("file_type", sa.String(128), nullable=False),
        sa.Column("category", sa.String(32), nullable=False, server_default="OTHER"),
        sa.Column("extracted_text", sa.Text(), nullable=True),
        sa.Column("uploaded_by", sa.String(64), nullable=False),
        *_timestamps(with_updated=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_opinion_documents_draft_id", "opinion_documents", ["draft_id"])

    op.create_table(
        "opinion_chat_messages",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("draft_id", sa.Integer(), sa.ForeignKey("opinion_drafts.id"), nullable=False),
        sa.Column("role", sa.String(16), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=True),
        *_timestamps(with_updated=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_opinion_chat_messages_draft_id", "opinion_chat_messages", ["draft_id"])
    op.create_index("ix_opinion_chat_messages_created_at", "opinion_chat_messages", ["created_at"])

    op.create_table(
        "compliance_checklist_items",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("task_id", sa.Integer(), sa.ForeignKey("tasks.id"), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("due_date", sa.Date(), nullable=True),
        sa.Column("priority", sa.String(16), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("assigned_to", sa.String(64), nullable=True),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.Column("completed_by", sa.String(64), nullable=True),
        sa.Column("created_by", sa.String(64), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_compliance_checklist_items_task_id", "compliance_checklist_items", ["task_id"])

    op.create_table(
        "sars_responses",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("task_id", sa.Integer(), sa.ForeignKey("tasks.id"), nullable=False),
        sa.Column("reference_number", sa.String(64), nullable=False),
        sa.Column("subject", sa.String(255), nullable=False),
        sa.Column("response_type", sa.String(64), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("deadline", sa.Date(), nullable=True),
        sa.Column("submitted_at", sa.DateTime(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_by", sa.String(64), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_sars_responses_task_id", "sars_responses", ["task_id"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(64), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("type", sa.String(32), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("task_id", sa.Integer(), nullable=True),
        sa.Column("action_url", sa.String(512), nullable=True),
        sa.Column("from_user_id", sa.String(64), nullable=True),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("read_at", sa.DateTime(), nullable=True),
        *_timestamps(with_updated=False),
        sa.PrimaryKeyConstraint("id"),
    )
    for column in ("user_id", "is_read", "created_at"):
        op.create_index(f"ix_notifications_{column}", "notifications", [column])

    op.create_table(
        "notification_preferences",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(64), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("notification_type", sa.String(32), nullable=False),
        sa.Column("task_id", sa.Integer(), nullable=True),
        sa.Column("in_app_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_notification_preferences_user_id", "notification_preferences", ["user_id"])

    # Seed default approval routes
    now = datetime.utcnow()
    partner_steps = [
        {"step_order": 1, "step_type": "ROLE", "is_required": True, "assigned_to_role": "PARTNER"},
        {
            "step_order": 2,
            "step_type": "CONDITIONAL",
            "is_required": True,
            "assigned_to_role": "ADMINISTRATOR",
            "condition": "context.risk_rating == 'HIGH'",
        },
    ]
    default_routes = [
        {
            "workflow_type": "CHANGE_REQUEST",
            "route_name": "dual-approval",
            "description": "Current employee (when still active) and proposed employee both approve",
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
        {
            "workflow_type": "CLIENT_ACCEPTANCE",
            "route_name": "client-partner-approval",
            "description": "Approval by the client partner selected on submission",
            "steps": [
                {
                    "step_order": 1,
                    "step_type": "USER",
                    "is_required": True,
                    "assigned_to_user_id_path": "client_partner_code",
                }
            ],
        },
    ] + [
        {
            "workflow_type": workflow_type,
            "route_name": "partner-approval",
            "description": "Partner sign-off, with an administrator review for high-risk work",
            "steps": partner_steps,
        }
        for workflow_type in ("ACCEPTANCE", "CONTINUANCE", "ENGAGEMENT_LETTER", "DPA")
    ]

    approval_routes = sa.table(
        "approval_routes",
        sa.column("workflow_type", sa.String),
        sa.column("route_name", sa.String),
        sa.column("description", sa.Text),
        sa.column("route_config", sa.Text),
        sa.column("is_default", sa.Boolean),
        sa.column("is_active", sa.Boolean),
        sa.column("created_at", sa.DateTime),
        sa.column("updated_at", sa.DateTime),
    )
    op.bulk_insert(
        approval_routes,
        [
            {
                "workflow_type": route["workflow_type"],
                "route_name": route["route_name"],
                "description": route["description"],
                "route_config": json.dumps({"requires_all_steps": True, "steps": route["steps"]}),
                "is_default": True,
                "is_active": True,
                "created_at": now,
                "updated_at": now,
            }
            for route in default_routes
        ],
    )


def downgrade() -> None:
    """Drop all tables created in upgrade."""
    op.drop_table("notification_preferences")
    op.drop_table("notifications")
    op.drop_table("sars_responses")
    op.drop_table("compliance_checklist_items")
    op.drop_table("opinion_chat_messages")
    op.drop_table("opinion_documents")
    op.drop_table("opinion_sections")
    op.drop_table("opinion_drafts")
    op.drop_table("approval_delegations")
    op.drop_table("approval_steps")
    op.drop_table("approvals")
    op.drop_table("approval_routes")
    op.drop_table("client_acceptance_answers")
    op.drop_table("client_acceptances")
    op.drop_table("acceptance_questions")
    op.drop_table("client_change_requests")
    op.drop_table("non_client_allocations")
    op.drop_table("task_team")
    op.drop_table("task_stage_history")
    op.drop_table("tasks")
    op.drop_table("clients")
    op.drop_table("service_line_users")
    op.drop_table("service_lines")
    op.drop_table("employees")
    op.drop_table("users")

"""
Database entity models.

Each module holds the tables of one business domain:

- users: application accounts and HR employee records
- service_lines: service-line code mapping and role grants
- clients: client records and partner/manager change requests
- tasks: tasks, stage history, team allocations, non-client allocations
- acceptance: client acceptance questionnaire and answers
- approvals: approval routes, approvals, steps and delegations
- opinions: opinion drafts, sections, documents and chat
- compliance: compliance checklist and SARS response tracker
- notifications: in-app notifications and preferences
"""

from . import (
    acceptance,
    approvals,
    clients,
    compliance,
    notifications,
    opinions,
    service_lines,
    tasks,
    users,
)

__all__ = [
    "acceptance",
    "approvals",
    "clients",
    "compliance",
    "notifications",
    "opinions",
    "service_lines",
    "tasks",
    "users",
]

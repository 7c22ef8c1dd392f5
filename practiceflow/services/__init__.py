"""
Service layer.

Workflow rules on top of the repositories: access control, task workflow,
Kanban grouping, planning, client acceptance, approvals, opinion drafting and
notifications.
"""

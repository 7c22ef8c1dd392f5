"""
Database repository layer using SQLModel.

Each module provides async data access for one business domain:

- base: repository interface, SQLModel implementation and QueryBuilder
- users, service_lines, clients, tasks, acceptance, approvals, opinions,
  compliance, notifications: domain repositories
- bundle: RepositoryBundle sharing one session across repositories
"""

from .bundle import RepositoryBundle, build_repositories

__all__ = ["RepositoryBundle", "build_repositories"]

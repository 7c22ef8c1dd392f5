"""
Request Dependencies.

Database session, repository bundle, the calling user and the service
objects used by the API endpoints.
"""

from typing import Annotated, AsyncGenerator, Optional

from fastapi import Depends, Header
from sqlmodel.ext.asyncio.session import AsyncSession

from practiceflow.core.database.entities.users import User
from practiceflow.core.database.repositories import RepositoryBundle, build_repositories
from practiceflow.core.database.session import get_session
from practiceflow.core.errors import UnauthorizedError
from practiceflow.core.logging_config import get_logger
from practiceflow.services.acceptance.service import AcceptanceService
from practiceflow.services.access import AccessService
from practiceflow.services.approvals import ApprovalService
from practiceflow.services.change_requests import ChangeRequestService
from practiceflow.services.compliance import ComplianceService
from practiceflow.services.dashboard import DashboardService
from practiceflow.services.kanban import KanbanService
from practiceflow.services.notifications import NotificationService
from practiceflow.services.opinions import OpinionService
from practiceflow.services.planner import PlannerService
from practiceflow.services.tasks import TaskService

logger = get_logger(__name__)

SessionDep = Annotated[AsyncSession, Depends(get_session)]


async def get_repos(session: SessionDep) -> AsyncGenerator[RepositoryBundle, None]:
    yield build_repositories(session)


ReposDep = Annotated[RepositoryBundle, Depends(get_repos)]


async def get_current_user(
    repos: ReposDep,
    x_user_id: Annotated[Optional[str], Header(description="Authenticated user id set by the identity proxy")] = None,
) -> User:
    """
    Resolve the caller from the ``X-User-Id`` header.

    Raises:
        UnauthorizedError: If the header is missing or names no known user
    """
    if not x_user_id:
        raise UnauthorizedError("Missing X-User-Id header")
    user = await repos.users.get_by_id(x_user_id)
    if user is None:
        logger.info(f"Rejected request for unknown user id {x_user_id}")
        raise UnauthorizedError("Unknown user")
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


def get_access_service(repos: ReposDep) -> AccessService:
    return AccessService(repos)


def get_task_service(repos: ReposDep) -> TaskService:
    return TaskService(repos)


def get_kanban_service(repos: ReposDep) -> KanbanService:
    return KanbanService(repos)


def get_planner_service(repos: ReposDep) -> PlannerService:
    return PlannerService(repos)


def get_acceptance_service(repos: ReposDep) -> AcceptanceService:
    return AcceptanceService(repos)


def get_approval_service(repos: ReposDep) -> ApprovalService:
    return ApprovalService(repos)


def get_change_request_service(repos: ReposDep) -> ChangeRequestService:
    return ChangeRequestService(repos)


def get_opinion_service(repos: ReposDep) -> OpinionService:
    return OpinionService(repos)


def get_notification_service(repos: ReposDep) -> NotificationService:
    return NotificationService(repos)


def get_compliance_service(repos: ReposDep) -> ComplianceService:
    return ComplianceService(repos)


def get_dashboard_service(repos: ReposDep) -> DashboardService:
    return DashboardService(repos)


AccessDep = Annotated[AccessService, Depends(get_access_service)]
TaskServiceDep = Annotated[TaskService, Depends(get_task_service)]
KanbanDep = Annotated[KanbanService, Depends(get_kanban_service)]
PlannerDep = Annotated[PlannerService, Depends(get_planner_service)]
AcceptanceDep = Annotated[AcceptanceService, Depends(get_acceptance_service)]
ApprovalDep = Annotated[ApprovalService, Depends(get_approval_service)]
ChangeRequestDep = Annotated[ChangeRequestService, Depends(get_change_request_service)]
OpinionDep = Annotated[OpinionService, Depends(get_opinion_service)]
NotificationDep = Annotated[NotificationService, Depends(get_notification_service)]
ComplianceDep = Annotated[ComplianceService, Depends(get_compliance_service)]
DashboardDep = Annotated[DashboardService, Depends(get_dashboard_service)]

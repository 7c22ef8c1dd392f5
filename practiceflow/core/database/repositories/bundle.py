"""
Repository bundle for dependency injection.

Services receive one bundle built on the request's session, so every
repository they touch shares a single transaction.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlmodel.ext.asyncio.session import AsyncSession

from .acceptance import AcceptanceQuestionRepository, ClientAcceptanceAnswerRepository, ClientAcceptanceRepository
from .approvals import (
    ApprovalDelegationRepository,
    ApprovalRepository,
    ApprovalRouteRepository,
    ApprovalStepRepository,
)
from .clients import ClientChangeRequestRepository, ClientRepository
from .compliance import ComplianceChecklistRepository, SarsResponseRepository
from .notifications import NotificationPreferenceRepository, NotificationRepository
from .opinions import OpinionChatRepository, OpinionDocumentRepository, OpinionDraftRepository, OpinionSectionRepository
from .service_lines import ServiceLineRepository, ServiceLineUserRepository
from .tasks import NonClientAllocationRepository, TaskRepository, TaskStageRepository, TaskTeamRepository
from .users import EmployeeRepository, UserRepository


@dataclass(frozen=True)
class RepositoryBundle:
    """Convenience bundle of all SQL repositories sharing one session."""

    session: AsyncSession
    users: UserRepository
    employees: EmployeeRepository
    service_lines: ServiceLineRepository
    service_line_users: ServiceLineUserRepository
    clients: ClientRepository
    change_requests: ClientChangeRequestRepository
    tasks: TaskRepository
    task_stages: TaskStageRepository
    task_team: TaskTeamRepository
    non_client_allocations: NonClientAllocationRepository
    acceptance_questions: AcceptanceQuestionRepository
    acceptances: ClientAcceptanceRepository
    acceptance_answers: ClientAcceptanceAnswerRepository
    approval_routes: ApprovalRouteRepository
    approvals: ApprovalRepository
    approval_steps: ApprovalStepRepository
    delegations: ApprovalDelegationRepository
    opinion_drafts: OpinionDraftRepository
    opinion_sections: OpinionSectionRepository
    opinion_documents: OpinionDocumentRepository
    opinion_chat: OpinionChatRepository
    checklist: ComplianceChecklistRepository
    sars: SarsResponseRepository
    notifications: NotificationRepository
    notification_preferences: NotificationPreferenceRepository

    async def commit(self) -> None:
        await self.session.commit()


def build_repositories(session: AsyncSession) -> RepositoryBundle:
    """Build a RepositoryBundle from an existing session.

    Args:
        session: Existing async session

    Returns:
        Bundle containing all repository instances
    """
    return RepositoryBundle(
        session=session,
        users=UserRepository(session),
        employees=EmployeeRepository(session),
        service_lines=ServiceLineRepository(session),
        service_line_users=ServiceLineUserRepository(session),
        clients=ClientRepository(session),
        change_requests=ClientChangeRequestRepository(session),
        tasks=TaskRepository(session),
        task_stages=TaskStageRepository(session),
        task_team=TaskTeamRepository(session),
        non_client_allocations=NonClientAllocationRepository(session),
        acceptance_questions=AcceptanceQuestionRepository(session),
        acceptances=ClientAcceptanceRepository(session),
        acceptance_answers=ClientAcceptanceAnswerRepository(session),
        approval_routes=ApprovalRouteRepository(session),
        approvals=ApprovalRepository(session),
        approval_steps=ApprovalStepRepository(session),
        delegations=ApprovalDelegationRepository(session),
        opinion_drafts=OpinionDraftRepository(session),
        opinion_sections=OpinionSectionRepository(session),
        opinion_documents=OpinionDocumentRepository(session),
        opinion_chat=OpinionChatRepository(session),
        checklist=ComplianceChecklistRepository(session),
        sars=SarsResponseRepository(session),
        notifications=NotificationRepository(session),
        notification_preferences=NotificationPreferenceRepository(session),
    )

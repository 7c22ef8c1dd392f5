"""
Client partner and manager change requests.

A change request proposes a new partner or manager for a client and is
routed through the CHANGE_REQUEST approval. The proposed employee always
approves; the current employee approves too while still active with a user
account. When the approval completes the client is updated and its
acceptance invalidated in the same transaction.
"""

from __future__ import annotations

from typing import Optional, Sequence

from practiceflow.core import monitoring
from practiceflow.core.database.base import utc_now
from practiceflow.core.database.entities.approvals import Approval
from practiceflow.core.database.entities.clients import Client, ClientChangeRequest
from practiceflow.core.database.entities.users import User
from practiceflow.core.database.repositories.bundle import RepositoryBundle
from practiceflow.core.errors import ConflictError, NotFoundError, ValidationError
from practiceflow.core.logging_config import get_logger
from practiceflow.core.models.domain.enums import (
    ChangeRequestStatus,
    ChangeType,
    NotificationType,
    WorkflowType,
)
from practiceflow.core.models.io.clients import ChangeRequestCreate
from practiceflow.services.acceptance.service import AcceptanceService
from practiceflow.services.access import AccessService
from practiceflow.services.approvals import ApprovalService
from practiceflow.services.notifications import NotificationService

logger = get_logger(__name__)

CLIENT_FIELDS = {
    ChangeType.PARTNER.value: "partner_code",
    ChangeType.MANAGER.value: "manager_code",
}


def role_label(change_type: str) -> str:
    return "Client Partner" if change_type == ChangeType.PARTNER.value else "Client Manager"


class ChangeRequestService:
    def __init__(self, repos: RepositoryBundle) -> None:
        self.repos = repos
        self.access = AccessService(repos)
        self.notifications = NotificationService(repos)

    async def create(self, client: Client, user: User, payload: ChangeRequestCreate) -> ClientChangeRequest:
        """Record the request and open its approval in one transaction.

        Raises:
            ValidationError: If the proposed employee is the current one, is
                inactive or unknown, or has no user account
            ConflictError: If a request for the same role is already pending
        """
        change_type = payload.change_type.value
        current_code = getattr(client, CLIENT_FIELDS[change_type])
        proposed_code = payload.proposed_employee_code.strip()
        if current_code and proposed_code.upper() == current_code.strip().upper():
            raise ValidationError(f"Proposed employee is already the current {role_label(change_type).lower()}")

        proposed = await self.repos.employees.get_by_code(proposed_code)
        if proposed is None or not proposed.active:
            raise ValidationError(
                "Proposed employee is not active or does not exist", details={"employee_code": proposed_code}
            )
        if await self.access.find_user_for_employee_code(proposed_code) is None:
            raise ValidationError(
                "Proposed employee does not have a user account", details={"employee_code": proposed_code}
            )

        existing = await self.repos.change_requests.get_pending(client.id, change_type)
        if existing is not None:
            raise ConflictError(
                "A pending change request already exists for this client and role",
                details={"change_request_id": existing.id},
            )

        current = await self.repos.employees.get_by_code(current_code) if current_code else None
        current_user = (
            await self.access.find_user_for_employee_code(current_code) if current and current.active else None
        )
        request = await self.repos.change_requests.stage(
            ClientChangeRequest(
                client_id=client.id,
                change_type=change_type,
                current_employee_code=current_code,
                current_employee_name=current.emp_name if current else None,
                proposed_employee_code=proposed.emp_code,
                proposed_employee_name=proposed.emp_name,
                reason=payload.reason,
                status=ChangeRequestStatus.PENDING.value,
                requires_dual_approval=current_user is not None,
                requested_by=user.id,
            )
        )

        approval = await ApprovalService(self.repos).create_approval(
            WorkflowType.CHANGE_REQUEST.value,
            request.id,
            requested_by=user.id,
            context={
                "client_id": client.id,
                "client_code": client.client_code,
                "client_name": client.client_name,
                "change_type": change_type,
                "current_employee_code": current_code,
                "current_employee_name": request.current_employee_name,
                "proposed_employee_code": proposed.emp_code,
                "proposed_employee_name": proposed.emp_name,
                "requires_dual_approval": request.requires_dual_approval,
                "reason": payload.reason,
            },
            commit=False,
        )
        request.approval_id = approval.id
        await self.repos.change_requests.stage(request)
        await self.repos.commit()

        logger.info(
            f"Change request created: id={request.id} client={client.id} {change_type} "
            f"{current_code} -> {proposed.emp_code} dual={request.requires_dual_approval}"
        )
        monitoring.log_workflow_event(
            "change_request_created", change_request_id=request.id, client_id=client.id, change_type=change_type
        )
        return request

    async def list_for_client(
        self, client_id: int, *, page: int, limit: int, status: Optional[ChangeRequestStatus] = None
    ) -> tuple[Sequence[ClientChangeRequest], int]:
        return await self.repos.change_requests.list_for_client(
            client_id, page=page, limit=limit, status=status.value if status else None
        )

    async def get(self, client_id: int, request_id: int) -> ClientChangeRequest:
        request = await self.repos.change_requests.get_by_id(request_id)
        if request is None or request.client_id != client_id:
            raise NotFoundError("Change request not found", details={"change_request_id": request_id})
        return request

    async def _linked_request(self, approval: Approval) -> Optional[ClientChangeRequest]:
        request = await self.repos.change_requests.get_by_id(approval.workflow_id)
        if request is None or request.approval_id != approval.id:
            logger.warning(f"Approval {approval.id} is not the open approval of change request {approval.workflow_id}")
            return None
        if request.status != ChangeRequestStatus.PENDING.value:
            logger.warning(f"Change request {request.id} already resolved as {request.status}")
            return None
        return request

    async def apply(self, approval: Approval, user: User) -> Optional[ClientChangeRequest]:
        """Completion handler: update the client and invalidate its acceptance. Does not commit."""
        request = await self._linked_request(approval)
        if request is None:
            return None
        client = await self.repos.clients.get_by_id(request.client_id)
        if client is None:
            raise NotFoundError("Client not found", details={"client_id": request.client_id})

        setattr(client, CLIENT_FIELDS[request.change_type], request.proposed_employee_code)
        await self.repos.clients.stage(client)

        request.status = ChangeRequestStatus.APPROVED.value
        request.resolved_by = user.id
        request.resolved_at = utc_now()
        await self.repos.change_requests.stage(request)

        label = role_label(request.change_type)
        await AcceptanceService(self.repos).invalidate(
            client.id, f"{label.lower()} changed to {request.proposed_employee_code}", user, commit=False
        )

        previous = (
            await self.access.find_user_for_employee_code(request.current_employee_code)
            if request.current_employee_code
            else None
        )
        if previous is not None and previous.id != user.id:
            await self.notifications.notify(
                previous.id,
                NotificationType.CLIENT_TEAM_CHANGED.value,
                f"{label} Change Completed",
                f"You have been replaced as {label} for {client.client_name} ({client.client_code}). "
                f"The new {label.lower()} is {request.proposed_employee_name or request.proposed_employee_code}.",
                action_url=f"/clients/{client.id}",
                from_user_id=user.id,
            )

        logger.info(
            f"Change request {request.id} applied: client {client.id} {CLIENT_FIELDS[request.change_type]} "
            f"-> {request.proposed_employee_code}"
        )
        monitoring.log_workflow_event("change_request_applied", change_request_id=request.id, client_id=client.id)
        return request

    async def reject(self, approval: Approval, user: User, comment: str) -> Optional[ClientChangeRequest]:
        """Rejection handler; the client is left unchanged. Does not commit."""
        request = await self._linked_request(approval)
        if request is None:
            return None
        request.status = ChangeRequestStatus.REJECTED.value
        request.resolved_by = user.id
        request.resolved_at = utc_now()
        request.resolution_comment = comment
        await self.repos.change_requests.stage(request)
        logger.info(f"Change request {request.id} rejected by {user.id}")
        monitoring.log_workflow_event("change_request_rejected", change_request_id=request.id)
        return request

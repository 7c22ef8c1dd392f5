"""
Client acceptance workflow.

A client's acceptance questionnaire is answered (draft saves allowed),
submitted for partner approval and, once approved, stays valid for a
configured number of days. Work past the ENGAGE stage on any of the client's
tasks requires a valid acceptance.
"""

from __future__ import annotations

import json
from datetime import timedelta
from typing import Dict, Mapping, Optional

from practiceflow.core import monitoring
from practiceflow.core.database.base import utc_now
from practiceflow.core.database.entities.acceptance import (
    AcceptanceQuestion,
    ClientAcceptance,
    ClientAcceptanceAnswer,
)
from practiceflow.core.database.entities.clients import Client
from practiceflow.core.database.entities.users import User
from practiceflow.core.database.repositories.bundle import RepositoryBundle
from practiceflow.core.errors import ConflictError, NotFoundError, ValidationError
from practiceflow.core.logging_config import get_logger
from practiceflow.core.models.domain.enums import (
    ApprovalPriority,
    NotificationType,
    RiskRating,
    StepStatus,
    WorkflowType,
)
from practiceflow.core.models.io.acceptance import (
    AcceptanceStatus,
    AcceptanceSubmit,
    AcceptanceSubmitResult,
    AnswerInput,
    QuestionnaireResponse,
    SavedAnswer,
)
from practiceflow.server.core.config import settings
from practiceflow.services.access import AccessService
from practiceflow.services.notifications import NotificationService

from .questionnaire import CLIENT_ACCEPTANCE, all_questions, get_questionnaire
from .risk import calculate_completion_percentage, calculate_risk_assessment, validate_required_questions

logger = get_logger(__name__)


def acceptance_is_valid(acceptance: Optional[ClientAcceptance]) -> bool:
    """Approved and, when an expiry is set, not yet expired."""
    if acceptance is None or acceptance.approved_at is None:
        return False
    if acceptance.valid_until is not None:
        return utc_now() < acceptance.valid_until
    return True


class AcceptanceService:
    def __init__(self, repos: RepositoryBundle, validity_days: Optional[int] = None) -> None:
        self.repos = repos
        self.access = AccessService(repos)
        self.notifications = NotificationService(repos)
        self.validity_days = validity_days if validity_days is not None else settings.workflow.acceptance_validity_days

    async def _require_client(self, client_id: int) -> Client:
        client = await self.repos.clients.get_by_id(client_id)
        if client is None:
            raise NotFoundError("Client not found", details={"client_id": client_id})
        return client

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    async def is_valid(self, client_id: int) -> bool:
        return acceptance_is_valid(await self.repos.acceptances.get_for_client(client_id))

    async def get_status(self, client_id: int, user: Optional[User] = None) -> AcceptanceStatus:
        acceptance = await self.repos.acceptances.get_for_client(client_id)
        if acceptance is None:
            return AcceptanceStatus(exists=False)

        users = await self.repos.users.get_many([uid for uid in (acceptance.completed_by, acceptance.approved_by) if uid])
        pending_step = None
        if acceptance.approval_id and not acceptance.is_approved:
            for step in await self.repos.approval_steps.list_for_approval(acceptance.approval_id):
                if step.status == StepStatus.PENDING.value:
                    pending_step = step
                    break

        pending_approver_name = None
        if pending_step is not None and pending_step.assigned_to_user_id:
            assignee = await self.repos.users.get_by_id(pending_step.assigned_to_user_id)
            pending_approver_name = assignee.name if assignee else None
        if pending_approver_name is None and acceptance.pending_partner_code:
            partner = await self.repos.employees.get_by_code(acceptance.pending_partner_code)
            pending_approver_name = partner.emp_name if partner else None

        can_approve = False
        if user is not None and pending_step is not None:
            if pending_step.assigned_to_user_id == user.id:
                can_approve = True
            elif pending_step.assigned_to_user_id is None and acceptance.pending_partner_code:
                partner_code = acceptance.pending_partner_code.strip().upper()
                codes = await self.access.find_employee_codes_for_user(user)
                can_approve = any(code.strip().upper() == partner_code for code in codes)

        completed_user = users.get(acceptance.completed_by) if acceptance.completed_by else None
        approved_user = users.get(acceptance.approved_by) if acceptance.approved_by else None
        return AcceptanceStatus(
            exists=True,
            completed=acceptance.is_completed,
            approved=acceptance.is_approved,
            is_valid=acceptance_is_valid(acceptance),
            risk_rating=acceptance.risk_rating,
            overall_risk_score=acceptance.overall_risk_score,
            completed_at=acceptance.completed_at,
            completed_by=completed_user.name if completed_user else acceptance.completed_by,
            approved_at=acceptance.approved_at,
            approved_by=approved_user.name if approved_user else acceptance.approved_by,
            valid_until=acceptance.valid_until,
            pending_approver_name=pending_approver_name,
            pending_partner_code=acceptance.pending_partner_code,
            approval_id=acceptance.approval_id,
            current_step_id=pending_step.id if pending_step else None,
            can_current_user_approve=can_approve,
        )

    # ------------------------------------------------------------------
    # Questionnaire and answers
    # ------------------------------------------------------------------

    async def get_or_create(self, client_id: int) -> ClientAcceptance:
        await self._require_client(client_id)
        acceptance = await self.repos.acceptances.get_for_client(client_id)
        if acceptance is None:
            acceptance = await self.repos.acceptances.stage(ClientAcceptance(client_id=client_id))
            logger.info(f"Created client acceptance for client {client_id}")
        return acceptance

    async def ensure_questions(self) -> Dict[str, AcceptanceQuestion]:
        """Question rows keyed by question key, creating any that are missing."""
        existing = await self.repos.acceptance_questions.by_key(CLIENT_ACCEPTANCE)
        created = 0
        for definition in all_questions(CLIENT_ACCEPTANCE):
            if definition.question_key in existing:
                continue
            question = AcceptanceQuestion(
                questionnaire_type=CLIENT_ACCEPTANCE,
                question_key=definition.question_key,
                section_key=definition.section_key,
                question_text=definition.question_text,
                field_type=definition.field_type.value,
                required=definition.required,
                order=definition.order,
                risk_weight=definition.risk_weight,
            )
            question.options = json.dumps(definition.options)
            question.high_risk_answers = json.dumps(definition.high_risk_answers)
            if definition.conditional_display is not None:
                question.conditional_display = definition.conditional_display.model_dump_json()
            existing[definition.question_key] = await self.repos.acceptance_questions.stage(question)
            created += 1
        if created:
            logger.info(f"Seeded {created} acceptance questions")
        return existing

    async def _answers_by_key(self, acceptance: ClientAcceptance) -> Dict[str, ClientAcceptanceAnswer]:
        if acceptance.id is None:
            return {}
        questions = await self.repos.acceptance_questions.by_key(CLIENT_ACCEPTANCE)
        keys = {question.id: key for key, question in questions.items()}
        return {
            keys[answer.question_id]: answer
            for answer in await self.repos.acceptance_answers.list_for_acceptance(acceptance.id)
            if answer.question_id in keys
        }

    async def _upsert_answers(self, acceptance: ClientAcceptance, answers: Mapping[str, AnswerInput]) -> int:
        questions = await self.ensure_questions()
        saved = await self._answers_by_key(acceptance)
        count = 0
        for key, value in answers.items():
            question = questions.get(key)
            if question is None:
                logger.debug(f"Ignoring answer for unknown question {key}")
                continue
            row = saved.get(key) or ClientAcceptanceAnswer(acceptance_id=acceptance.id, question_id=question.id)
            row.answer = value.answer
            row.comment = value.comment
            await self.repos.acceptance_answers.stage(row)
            count += 1
        return count

    async def save_answers(self, client_id: int, answers: Mapping[str, AnswerInput]) -> int:
        """Draft save; unknown question keys are ignored. Returns the number saved."""
        acceptance = await self.get_or_create(client_id)
        if acceptance.is_completed and not acceptance.is_approved:
            raise ConflictError("The acceptance has been submitted and is awaiting approval")
        count = await self._upsert_answers(acceptance, answers)
        await self.repos.commit()
        return count

    async def get_questionnaire(self, client_id: int, user: User) -> QuestionnaireResponse:
        await self._require_client(client_id)
        acceptance = await self.repos.acceptances.get_for_client(client_id)
        saved = await self._answers_by_key(acceptance) if acceptance else {}
        answer_texts = {key: row.answer for key, row in saved.items() if row.answer is not None}
        return QuestionnaireResponse(
            sections=get_questionnaire(CLIENT_ACCEPTANCE),
            answers={key: SavedAnswer(answer=row.answer, comment=row.comment) for key, row in saved.items()},
            completion_percentage=calculate_completion_percentage(all_questions(CLIENT_ACCEPTANCE), answer_texts),
            status=await self.get_status(client_id, user),
        )

    # ------------------------------------------------------------------
    # Submission and decisions
    # ------------------------------------------------------------------

    async def submit(self, client_id: int, user: User, payload: AcceptanceSubmit) -> AcceptanceSubmitResult:
        """Score the questionnaire and open the partner approval.

        Raises:
            ConflictError: If a submitted acceptance is still awaiting approval
            ValidationError: If required questions are unanswered
        """
        # Local import: approval completion calls back into this module
        from practiceflow.services.approvals.service import ApprovalService

        client = await self._require_client(client_id)
        acceptance = await self.get_or_create(client_id)
        if acceptance.is_completed and not acceptance.is_approved:
            raise ConflictError(
                "Client acceptance has already been submitted and is awaiting approval",
                details={"approval_id": acceptance.approval_id},
            )

        questions = all_questions(CLIENT_ACCEPTANCE)
        saved = await self._answers_by_key(acceptance)
        merged = {key: row.answer for key, row in saved.items() if row.answer is not None}
        merged.update({key: value.answer for key, value in payload.answers.items() if value.answer is not None})
        check = validate_required_questions(questions, merged)
        if not check.is_valid:
            raise ValidationError(
                f"Missing required questions: {', '.join(check.missing_questions)}",
                details={"missing_questions": check.missing_questions},
            )

        await self._upsert_answers(acceptance, payload.answers)
        assessment = calculate_risk_assessment(questions, merged)

        now = utc_now()
        acceptance.completed_at = now
        acceptance.completed_by = user.id
        acceptance.approved_at = None
        acceptance.approved_by = None
        acceptance.valid_until = None
        acceptance.risk_rating = assessment.risk_rating.value
        acceptance.overall_risk_score = assessment.overall_risk_score
        acceptance.risk_summary = assessment.risk_summary
        acceptance.pending_partner_code = payload.selected_partner_code or None
        acceptance.pending_manager_code = payload.selected_manager_code or None
        acceptance.pending_incharge_code = payload.selected_incharge_code or None
        await self.repos.acceptances.stage(acceptance)

        approval = await ApprovalService(self.repos).create_approval(
            WorkflowType.CLIENT_ACCEPTANCE.value,
            acceptance.id,
            requested_by=user.id,
            priority=(
                ApprovalPriority.HIGH.value
                if assessment.risk_rating == RiskRating.HIGH
                else ApprovalPriority.MEDIUM.value
            ),
            context={
                "client_id": client.id,
                "client_code": client.client_code,
                "client_name": client.client_name,
                "risk_rating": assessment.risk_rating.value,
                "risk_score": assessment.overall_risk_score,
                "client_partner_code": payload.selected_partner_code or client.partner_code,
            },
            commit=False,
        )
        acceptance.approval_id = approval.id
        await self.repos.acceptances.stage(acceptance)
        await self.repos.commit()

        logger.info(
            f"Client acceptance submitted: client={client_id} rating={acceptance.risk_rating} "
            f"score={acceptance.overall_risk_score} approval={approval.id}"
        )
        monitoring.log_workflow_event(
            "acceptance_submitted", client_id=client_id, risk_rating=acceptance.risk_rating, approval_id=approval.id
        )
        return AcceptanceSubmitResult(
            status=await self.get_status(client_id, user),
            risk_summary=assessment.risk_summary,
            section_risks=assessment.section_risks,
        )

    async def approve(
        self, client_id: int, user: User, approval_id: Optional[int] = None, commit: bool = True
    ) -> ClientAcceptance:
        """Mark the acceptance approved and apply the pending team changes.

        Approving an already approved acceptance returns it unchanged.
        """
        acceptance = await self.repos.acceptances.get_for_client(client_id)
        if acceptance is None:
            raise NotFoundError("Client acceptance not found", details={"client_id": client_id})
        if not acceptance.is_completed:
            raise ValidationError("Cannot approve incomplete client acceptance")
        if acceptance.is_approved:
            logger.info(f"Client acceptance for client {client_id} already approved")
            return acceptance

        pending = {
            "partner_code": acceptance.pending_partner_code,
            "manager_code": acceptance.pending_manager_code,
            "incharge_code": acceptance.pending_incharge_code,
        }
        changes = {field: value for field, value in pending.items() if value}
        if changes:
            client = await self._require_client(client_id)
            for field, value in changes.items():
                setattr(client, field, value)
            await self.repos.clients.stage(client)
            logger.info(f"Applied team changes to client {client_id} on acceptance approval: {changes}")

        now = utc_now()
        acceptance.approved_at = now
        acceptance.approved_by = user.id
        acceptance.approval_id = approval_id or acceptance.approval_id
        acceptance.valid_until = now + timedelta(days=self.validity_days)
        await self.repos.acceptances.stage(acceptance)
        if commit:
            await self.repos.commit()
        monitoring.log_workflow_event("acceptance_approved", client_id=client_id, approved_by=user.id)
        return acceptance

    async def reopen(self, acceptance: ClientAcceptance) -> ClientAcceptance:
        """Return a rejected submission to draft; answers are kept for correction. Does not commit."""
        acceptance.completed_at = None
        acceptance.completed_by = None
        acceptance.approval_id = None
        acceptance.pending_partner_code = None
        acceptance.pending_manager_code = None
        acceptance.pending_incharge_code = None
        await self.repos.acceptances.stage(acceptance)
        logger.info(f"Client acceptance for client {acceptance.client_id} reopened after rejection")
        monitoring.log_workflow_event("acceptance_reopened", client_id=acceptance.client_id)
        return acceptance

    async def invalidate(
        self, client_id: int, reason: str, user: Optional[User] = None, commit: bool = True
    ) -> Optional[ClientAcceptance]:
        """Expire the acceptance now; returns ``None`` when the client has none."""
        acceptance = await self.repos.acceptances.get_for_client(client_id)
        if acceptance is None:
            return None
        acceptance.valid_until = utc_now()
        acceptance.risk_summary = f"{acceptance.risk_summary or ''}\n\nInvalidated: {reason}"
        await self.repos.acceptances.stage(acceptance)

        recipient = acceptance.approved_by or acceptance.completed_by
        if recipient and (user is None or recipient != user.id):
            await self.notifications.notify(
                recipient,
                NotificationType.ACCEPTANCE_INVALIDATED.value,
                "Client acceptance invalidated",
                reason,
                action_url=f"/clients/{client_id}/acceptance",
                from_user_id=user.id if user else None,
            )
        if commit:
            await self.repos.commit()
        logger.info(f"Client acceptance for client {client_id} invalidated: {reason}")
        return acceptance

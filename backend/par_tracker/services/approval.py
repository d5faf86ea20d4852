"""Approval step transitions and the per-approver queue.

All functions accept a sync SQLAlchemy Session. Each transition checks every
guard before writing anything and commits the step change, the request
status and the audit entry together.
"""
import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.orm import Session, aliased, selectinload

from par_tracker.core.exceptions import (
    ApproverNotInChainError,
    NoPendingStepError,
    NotAuthorizedError,
    NotCurrentStepError,
    NotPendingError,
    StepNotFoundError,
)
from par_tracker.db.session import unit_of_work
from par_tracker.models.approval import ApprovalStep, StepStatus
from par_tracker.models.approver import Approver
from par_tracker.models.audit import AuditAction, AuditEntityType
from par_tracker.models.request import ParRequest, RequestStatus
from par_tracker.services import audit as audit_svc
from par_tracker.services.workflow import current_step, derive_status, load_request_for_update

logger = logging.getLogger(__name__)


# ─── Approve ───

def approve_step(
    db: Session,
    request_id: uuid.UUID,
    approver_id: uuid.UUID,
    acting_as: str | None = None,
) -> ParRequest:
    """Approve the approver's step and advance the chain.

    Args:
        db: Sync SQLAlchemy session.
        request_id: Request being approved.
        approver_id: Approver whose step is being signed off.
        acting_as: Display name of the person actually acting; must be the
            approver or one of its active delegates. Defaults to the
            approver's own name.

    Returns:
        The request, APPROVED once its last step is approved, otherwise
        still PENDING_APPROVAL.

    Raises:
        RequestNotFoundError, NotPendingError, NoPendingStepError,
        NotCurrentStepError, NotAuthorizedError.
    """
    with unit_of_work(db):
        request = load_request_for_update(db, request_id)
        if request.status != RequestStatus.PENDING_APPROVAL.value:
            raise NotPendingError(request_id, request.status)

        steps = _load_chain(db, request_id)
        step = next(
            (
                s for s in steps
                if s.approver_id == approver_id and s.status == StepStatus.PENDING.value
            ),
            None,
        )
        if step is None:
            raise NoPendingStepError(approver_id)

        current = current_step(steps)
        if current is not step:
            raise NotCurrentStepError(step.step_order, current.step_order)

        _check_acting_as(step.approver, acting_as)

        approved_by = acting_as or step.approver.name
        step.status = StepStatus.APPROVED.value
        step.approved_by = approved_by
        step.approved_at = datetime.now(timezone.utc)

        request.status = derive_status(steps).value
        fully_approved = request.status == RequestStatus.APPROVED.value
        db.flush()

        audit_svc.record(
            db,
            entity_type=AuditEntityType.APPROVAL_STEP,
            entity_id=step.id,
            action=AuditAction.APPROVED,
            changed_by=approved_by,
            metadata={
                "request_id": request.id,
                "job_id": request.job_id,
                "step_order": step.step_order,
                "approver_name": step.approver.name,
                "acting_as": acting_as or None,
                "request_fully_approved": fully_approved,
            },
        )

    logger.info(
        "Approval: request=%s step=%s approver=%s by=%s status=%s",
        request.job_id, step.step_order, approver_id, approved_by, request.status,
    )
    return request


# ─── Kick back ───

def kick_back(
    db: Session,
    request_id: uuid.UUID,
    approver_id: uuid.UUID,
    kick_back_to_step: int,
    reason: str | None = None,
    acting_as: str | None = None,
) -> ParRequest:
    """Rewind the chain to ``kick_back_to_step`` and mark the request KICKED_BACK.

    Any approver in the chain may kick back, whatever the state of their own
    step. Every step from the target onwards goes back to PENDING with its
    approval cleared; the reason is recorded on the kicking approver's step.

    Raises:
        RequestNotFoundError, NotPendingError, ApproverNotInChainError,
        NotAuthorizedError, StepNotFoundError.
    """
    with unit_of_work(db):
        request = load_request_for_update(db, request_id)
        if request.status != RequestStatus.PENDING_APPROVAL.value:
            raise NotPendingError(request_id, request.status)

        steps = _load_chain(db, request_id)
        kicker_step = next((s for s in steps if s.approver_id == approver_id), None)
        if kicker_step is None:
            raise ApproverNotInChainError(approver_id)

        _check_acting_as(kicker_step.approver, acting_as)

        if not any(s.step_order == kick_back_to_step for s in steps):
            raise StepNotFoundError(kick_back_to_step)

        acting_name = acting_as or kicker_step.approver.name
        for s in steps:
            if s.step_order >= kick_back_to_step:
                s.status = StepStatus.PENDING.value
                s.approved_by = None
                s.approved_at = None
                s.kick_back_reason = None
                s.kick_back_to_step = None

        kicker_step.kick_back_reason = (reason or "").strip() or None
        kicker_step.kick_back_to_step = kick_back_to_step

        request.status = RequestStatus.KICKED_BACK.value
        db.flush()

        audit_svc.record(
            db,
            entity_type=AuditEntityType.APPROVAL_STEP,
            entity_id=kicker_step.id,
            action=AuditAction.KICKED_BACK,
            changed_by=acting_name,
            metadata={
                "request_id": request.id,
                "job_id": request.job_id,
                "kicked_back_by": acting_name,
                "kick_back_to_step": kick_back_to_step,
                "reason": kicker_step.kick_back_reason,
            },
        )

    logger.info(
        "Kick-back: request=%s by=%s to_step=%s",
        request.job_id, acting_name, kick_back_to_step,
    )
    return request


# ─── Queue ───

def queue_for(db: Session, approver_id: uuid.UUID) -> list[tuple[ApprovalStep, ParRequest]]:
    """Return (step, request) pairs currently waiting on the given approver.

    Only a request's current step counts: an approver holding step 3 does not
    see the request while step 1 is outstanding. Oldest requests first.
    """
    pending = aliased(ApprovalStep)
    current_order = (
        select(func.min(pending.step_order))
        .where(
            pending.request_id == ApprovalStep.request_id,
            pending.status == StepStatus.PENDING.value,
        )
        .correlate(ApprovalStep)
        .scalar_subquery()
    )

    stmt = (
        select(ApprovalStep, ParRequest)
        .join(ParRequest, ParRequest.id == ApprovalStep.request_id)
        .where(
            ApprovalStep.approver_id == approver_id,
            ApprovalStep.status == StepStatus.PENDING.value,
            ParRequest.status == RequestStatus.PENDING_APPROVAL.value,
            ApprovalStep.step_order == current_order,
        )
        .order_by(ParRequest.created_at.asc(), ParRequest.job_id.asc())
        .options(
            selectinload(ApprovalStep.approver),
            selectinload(ParRequest.approval_steps).selectinload(ApprovalStep.approver),
        )
    )
    return [(step, request) for step, request in db.execute(stmt).all()]


# ─── Internal helpers ───

def _load_chain(db: Session, request_id: uuid.UUID) -> list[ApprovalStep]:
    stmt = (
        select(ApprovalStep)
        .where(ApprovalStep.request_id == request_id)
        .order_by(ApprovalStep.step_order.asc())
        .options(selectinload(ApprovalStep.approver).selectinload(Approver.delegates))
        .execution_options(populate_existing=True)
    )
    return list(db.execute(stmt).scalars().all())


def _check_acting_as(approver: Approver, acting_as: str | None) -> None:
    if acting_as and not approver.can_be_acted_for_by(acting_as):
        raise NotAuthorizedError(acting_as, approver.name)

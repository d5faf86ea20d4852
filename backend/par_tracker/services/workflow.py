"""Request status state machine.

DRAFT -> PENDING_APPROVAL -> APPROVED | KICKED_BACK
KICKED_BACK -> PENDING_APPROVAL (resubmit)
DRAFT | PENDING_APPROVAL | KICKED_BACK -> CANCELLED (terminal)

While a request is in the chain its status is derived from its steps; the
only override is a kick-back, which sets KICKED_BACK directly.
"""
import logging
import uuid
from collections.abc import Iterable
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from par_tracker.core.exceptions import InvalidStateError, RequestNotFoundError
from par_tracker.db.session import unit_of_work
from par_tracker.models.approval import ApprovalStep, StepStatus
from par_tracker.models.audit import AuditAction, AuditEntityType
from par_tracker.models.request import ParRequest, RequestStatus
from par_tracker.services import audit as audit_svc
from par_tracker.services.approval_chain import materialize_chain

logger = logging.getLogger(__name__)

SUBMITTABLE_STATUSES = (RequestStatus.DRAFT.value, RequestStatus.KICKED_BACK.value)
CANCELLABLE_STATUSES = (
    RequestStatus.DRAFT.value,
    RequestStatus.PENDING_APPROVAL.value,
    RequestStatus.KICKED_BACK.value,
)


# ─── Derived state ───

def current_step(steps: Iterable[ApprovalStep]) -> ApprovalStep | None:
    """The lowest-ordered PENDING step, or None when the chain is complete."""
    pending = [s for s in steps if s.status == StepStatus.PENDING.value]
    return min(pending, key=lambda s: s.step_order, default=None)


def derive_status(steps: Iterable[ApprovalStep]) -> RequestStatus:
    """Request status implied by its steps: any PENDING step keeps it pending."""
    if current_step(steps) is not None:
        return RequestStatus.PENDING_APPROVAL
    return RequestStatus.APPROVED


def load_request_for_update(db: Session, request_id: uuid.UUID) -> ParRequest:
    """Load and row-lock a request for a state transition."""
    request = db.execute(
        select(ParRequest)
        .where(ParRequest.id == request_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    ).scalars().first()
    if request is None:
        raise RequestNotFoundError(request_id)
    return request


# ─── Submit ───

def submit_request(
    db: Session,
    request_id: uuid.UUID,
    submitted_by: str | None = None,
) -> ParRequest:
    """Submit (or resubmit after a kick-back) a request into the approval chain.

    Materializes a fresh chain from the current active roster, moves the
    request to PENDING_APPROVAL and stamps the submitter, all in one
    transaction.

    Raises:
        RequestNotFoundError: Unknown request.
        InvalidStateError: Status is not DRAFT or KICKED_BACK.
        NoApproversConfiguredError: No active approvers; the request is left
            untouched.
    """
    with unit_of_work(db):
        request = load_request_for_update(db, request_id)
        prior_status = request.status
        if prior_status not in SUBMITTABLE_STATUSES:
            raise InvalidStateError(
                f"Request can only be submitted from DRAFT or KICKED_BACK status "
                f"(status={prior_status}).",
                current_status=prior_status,
            )

        steps = materialize_chain(db, request.id)

        request.status = RequestStatus.PENDING_APPROVAL.value
        request.submitted_by = (submitted_by or "").strip() or request.submitted_by
        request.submitted_at = datetime.now(timezone.utc)
        db.flush()

        action = (
            AuditAction.RESUBMITTED
            if prior_status == RequestStatus.KICKED_BACK.value
            else AuditAction.SUBMITTED
        )
        approver_names = [step.approver.name for step in steps]
        audit_svc.record(
            db,
            entity_type=AuditEntityType.PAR_REQUEST,
            entity_id=request.id,
            action=action,
            changed_by=submitted_by,
            metadata={
                "job_id": request.job_id,
                "approver_count": len(steps),
                "approver_names": approver_names,
            },
        )

    logger.info(
        "Request %s %s by %s (%s steps)",
        request.job_id, action.value.lower(), request.submitted_by, len(steps),
    )
    return request


# ─── Cancel ───

def cancel_request(
    db: Session,
    request_id: uuid.UUID,
    cancelled_by: str | None = None,
) -> ParRequest:
    """Move a request to the terminal CANCELLED status.

    The approval steps are left in place as a record of how far the request
    got.
    """
    with unit_of_work(db):
        request = load_request_for_update(db, request_id)
        prior_status = request.status
        if prior_status not in CANCELLABLE_STATUSES:
            raise InvalidStateError(
                f"Only DRAFT, PENDING_APPROVAL or KICKED_BACK requests can be cancelled "
                f"(status={prior_status}).",
                current_status=prior_status,
            )

        request.status = RequestStatus.CANCELLED.value
        db.flush()

        audit_svc.record(
            db,
            entity_type=AuditEntityType.PAR_REQUEST,
            entity_id=request.id,
            action=AuditAction.CANCELLED,
            changed_by=cancelled_by,
            changes={"status": {"old": prior_status, "new": request.status}},
            metadata={"job_id": request.job_id},
        )

    logger.info("Request %s cancelled by %s", request.job_id, cancelled_by)
    return request

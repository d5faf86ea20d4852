"""Approval chain materialization.

Snapshots the active approver roster into a fixed, request-bound sequence of
PENDING steps. Runs inside the submit transaction; the caller commits.
"""
import logging
import uuid

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from par_tracker.core.exceptions import NoApproversConfiguredError
from par_tracker.models.approval import ApprovalStep, StepStatus
from par_tracker.models.approver import Approver
from par_tracker.models.request import ParRequest

logger = logging.getLogger(__name__)


def get_active_approvers(db: Session) -> list[Approver]:
    """Active approvers in chain order."""
    stmt = (
        select(Approver)
        .where(Approver.is_active.is_(True))
        .order_by(Approver.sort_order.asc(), Approver.name.asc())
    )
    return list(db.execute(stmt).scalars().all())


def materialize_chain(db: Session, request_id: uuid.UUID) -> list[ApprovalStep]:
    """Replace the request's steps with one PENDING step per active approver.

    Re-running on the same request yields the same chain rather than
    appending to it; old steps are deleted first.

    Raises:
        NoApproversConfiguredError: If there is no active approver. Nothing
            has been written at that point.
    """
    approvers = get_active_approvers(db)
    if not approvers:
        raise NoApproversConfiguredError()

    db.execute(
        delete(ApprovalStep)
        .where(ApprovalStep.request_id == request_id)
        .execution_options(synchronize_session="fetch")
    )
    db.flush()

    steps = [
        ApprovalStep(
            request_id=request_id,
            approver_id=approver.id,
            step_order=position,
            status=StepStatus.PENDING.value,
        )
        for position, approver in enumerate(approvers, start=1)
    ]
    db.add_all(steps)
    db.flush()

    # A loaded request still holds the deleted steps in its collection
    request = db.get(ParRequest, request_id)
    if request is not None:
        db.expire(request, ["approval_steps"])

    logger.info(
        "Materialized %s-step approval chain for request %s", len(steps), request_id
    )
    return steps

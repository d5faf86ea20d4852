"""Tests for submit / resubmit / cancel and the derived request status."""
import uuid

import pytest
from sqlalchemy import select

from conftest import make_request, make_roster
from par_tracker.core.exceptions import (
    InvalidStateError,
    NoApproversConfiguredError,
    RequestNotFoundError,
)
from par_tracker.models.approval import ApprovalStep, StepStatus
from par_tracker.models.audit import AuditLog
from par_tracker.models.request import RequestStatus
from par_tracker.services import approval as approval_svc
from par_tracker.services import approvers as approvers_svc
from par_tracker.services import requests as requests_svc
from par_tracker.services import workflow as workflow_svc
from par_tracker.services.workflow import current_step, derive_status


def _step(order: int, status: StepStatus) -> ApprovalStep:
    return ApprovalStep(step_order=order, status=status.value)


def _audit_actions(db, entity_id) -> list[str]:
    return list(
        db.execute(
            select(AuditLog.action)
            .where(AuditLog.entity_id == str(entity_id))
            .order_by(AuditLog.created_at)
        ).scalars()
    )


# ─── Derived state ────────────────────────────────────────────────────────────

def test_current_step_is_lowest_pending():
    steps = [
        _step(1, StepStatus.APPROVED),
        _step(3, StepStatus.PENDING),
        _step(2, StepStatus.PENDING),
    ]
    assert current_step(steps).step_order == 2


def test_current_step_none_when_all_approved():
    steps = [_step(1, StepStatus.APPROVED), _step(2, StepStatus.APPROVED)]
    assert current_step(steps) is None


def test_derive_status_pending_while_any_step_pending():
    steps = [_step(1, StepStatus.APPROVED), _step(2, StepStatus.PENDING)]
    assert derive_status(steps) is RequestStatus.PENDING_APPROVAL


def test_derive_status_approved_when_no_step_pending():
    steps = [_step(1, StepStatus.APPROVED), _step(2, StepStatus.APPROVED)]
    assert derive_status(steps) is RequestStatus.APPROVED


# ─── Submit ───────────────────────────────────────────────────────────────────

def test_submit_moves_draft_to_pending(db, roster):
    request = make_request(db)
    workflow_svc.submit_request(db, request.id, submitted_by="  Pat Principal  ")

    fetched = requests_svc.get_request(db, request.id)
    assert fetched.status == RequestStatus.PENDING_APPROVAL.value
    assert fetched.submitted_by == "Pat Principal"
    assert fetched.submitted_at is not None
    assert len(fetched.approval_steps) == len(roster)
    assert _audit_actions(db, request.id) == ["CREATED", "SUBMITTED"]


def test_submit_without_approvers_leaves_draft(db):
    """No active approvers: submit fails and nothing about the request changes."""
    request = make_request(db)

    with pytest.raises(NoApproversConfiguredError):
        workflow_svc.submit_request(db, request.id, submitted_by="Pat Principal")

    fetched = requests_svc.get_request(db, request.id)
    assert fetched.status == RequestStatus.DRAFT.value
    assert fetched.submitted_at is None
    assert fetched.approval_steps == []
    assert _audit_actions(db, request.id) == ["CREATED"]


def test_submit_twice_is_rejected(db, roster):
    request = make_request(db)
    workflow_svc.submit_request(db, request.id, submitted_by="Pat Principal")

    with pytest.raises(InvalidStateError) as exc_info:
        workflow_svc.submit_request(db, request.id, submitted_by="Pat Principal")
    assert exc_info.value.current_status == RequestStatus.PENDING_APPROVAL.value


def test_submit_unknown_request(db, roster):
    with pytest.raises(RequestNotFoundError):
        workflow_svc.submit_request(db, uuid.uuid4(), submitted_by="Pat Principal")


def test_resubmit_after_kick_back_builds_fresh_chain(db, roster):
    request = make_request(db)
    workflow_svc.submit_request(db, request.id, submitted_by="Pat Principal")
    approval_svc.approve_step(db, request.id, roster[0].id)
    approval_svc.kick_back(db, request.id, roster[1].id, kick_back_to_step=1, reason="Wrong fund")

    workflow_svc.submit_request(db, request.id, submitted_by="Pat Principal")

    fetched = requests_svc.get_request(db, request.id)
    assert fetched.status == RequestStatus.PENDING_APPROVAL.value
    assert [s.step_order for s in fetched.approval_steps] == [1, 2, 3, 4]
    assert all(s.status == StepStatus.PENDING.value for s in fetched.approval_steps)
    assert all(s.kick_back_reason is None for s in fetched.approval_steps)
    assert _audit_actions(db, request.id)[-1] == "RESUBMITTED"


def test_resubmit_skips_approver_deactivated_after_kick_back(db, roster):
    request = make_request(db)
    workflow_svc.submit_request(db, request.id, submitted_by="Pat Principal")
    approval_svc.kick_back(db, request.id, roster[0].id, kick_back_to_step=1, reason="Wrong fund")

    approvers_svc.deactivate_approver(db, roster[2].id)
    workflow_svc.submit_request(db, request.id, submitted_by="Pat Principal")

    steps = requests_svc.get_request(db, request.id).approval_steps
    assert len(steps) == 3
    assert [s.approver_id for s in steps] == [roster[0].id, roster[1].id, roster[3].id]
    assert [s.step_order for s in steps] == [1, 2, 3]


def test_resubmit_includes_approver_added_after_kick_back(db, roster):
    request = make_request(db)
    workflow_svc.submit_request(db, request.id, submitted_by="Pat Principal")
    approval_svc.kick_back(db, request.id, roster[0].id, kick_back_to_step=1, reason="Wrong fund")

    added = approvers_svc.create_approver(db, name="Taylor Board", title="Board Clerk")
    workflow_svc.submit_request(db, request.id, submitted_by="Pat Principal")

    steps = requests_svc.get_request(db, request.id).approval_steps
    assert len(steps) == 5
    assert [s.approver_id for s in steps] == [a.id for a in roster] + [added.id]
    assert [s.step_order for s in steps] == [1, 2, 3, 4, 5]
    assert all(s.status == StepStatus.PENDING.value for s in steps)


def test_resubmit_keeps_original_submitter_when_blank(db, roster):
    request = make_request(db, created_by="Pat Principal")
    workflow_svc.submit_request(db, request.id, submitted_by="   ")
    assert requests_svc.get_request(db, request.id).submitted_by == "Pat Principal"


# ─── Cancel ───────────────────────────────────────────────────────────────────

def test_cancel_pending_request_keeps_steps(db, roster):
    request = make_request(db)
    workflow_svc.submit_request(db, request.id, submitted_by="Pat Principal")
    approval_svc.approve_step(db, request.id, roster[0].id)

    workflow_svc.cancel_request(db, request.id, cancelled_by="Pat Principal")

    fetched = requests_svc.get_request(db, request.id)
    assert fetched.status == RequestStatus.CANCELLED.value
    assert fetched.approval_steps[0].status == StepStatus.APPROVED.value
    assert _audit_actions(db, request.id)[-1] == "CANCELLED"


def test_cancel_is_terminal(db, roster):
    request = make_request(db)
    workflow_svc.cancel_request(db, request.id)

    with pytest.raises(InvalidStateError):
        workflow_svc.cancel_request(db, request.id)
    with pytest.raises(InvalidStateError):
        workflow_svc.submit_request(db, request.id, submitted_by="Pat Principal")


def test_cannot_cancel_approved_request(db):
    (only,) = make_roster(db, [("Roger Holt", "Director of Human Resources")])
    request = make_request(db)
    workflow_svc.submit_request(db, request.id, submitted_by="Pat Principal")
    approval_svc.approve_step(db, request.id, only.id)

    with pytest.raises(InvalidStateError):
        workflow_svc.cancel_request(db, request.id)

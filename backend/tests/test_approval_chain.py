"""Tests for approval chain materialization."""
import pytest
from sqlalchemy import select

from conftest import make_request, make_roster
from par_tracker.core.exceptions import NoApproversConfiguredError
from par_tracker.db.session import unit_of_work
from par_tracker.models.approval import ApprovalStep, StepStatus
from par_tracker.services import approvers as approvers_svc
from par_tracker.services.approval_chain import get_active_approvers, materialize_chain


def _steps(db, request_id):
    return db.execute(
        select(ApprovalStep)
        .where(ApprovalStep.request_id == request_id)
        .order_by(ApprovalStep.step_order)
    ).scalars().all()


def test_one_pending_step_per_active_approver(db, roster):
    request = make_request(db)
    with unit_of_work(db):
        materialize_chain(db, request.id)

    steps = _steps(db, request.id)
    assert [s.step_order for s in steps] == [1, 2, 3, 4]
    assert [s.approver_id for s in steps] == [a.id for a in roster]
    assert all(s.status == StepStatus.PENDING.value for s in steps)
    assert all(s.approved_by is None and s.approved_at is None for s in steps)


def test_rematerializing_replaces_the_chain(db, roster):
    """Running twice yields the same chain, not a doubled one."""
    request = make_request(db)
    with unit_of_work(db):
        materialize_chain(db, request.id)
    with unit_of_work(db):
        materialize_chain(db, request.id)

    steps = _steps(db, request.id)
    assert len(steps) == len(roster)
    assert [s.step_order for s in steps] == [1, 2, 3, 4]


def test_inactive_approvers_are_skipped(db, roster):
    approvers_svc.deactivate_approver(db, roster[1].id)
    request = make_request(db)
    with unit_of_work(db):
        materialize_chain(db, request.id)

    steps = _steps(db, request.id)
    assert [s.approver_id for s in steps] == [roster[0].id, roster[2].id, roster[3].id]
    assert [s.step_order for s in steps] == [1, 2, 3]


def test_chain_follows_sort_order(db):
    first, second = make_roster(db, [("Alpha", "First"), ("Beta", "Second")])
    approvers_svc.reorder_approvers(db, [second.id, first.id])

    assert [a.name for a in get_active_approvers(db)] == ["Beta", "Alpha"]


def test_no_active_approvers_raises(db):
    request = make_request(db)
    with pytest.raises(NoApproversConfiguredError):
        with unit_of_work(db):
            materialize_chain(db, request.id)

    assert _steps(db, request.id) == []

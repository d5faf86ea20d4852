"""Tests for the dashboard summary.

Tests:
  1. test_empty_database                - zero counts, no activity
  2. test_counts_by_status              - approved only within the trailing 30 days
  3. test_approved_window_follows_now
  4. test_recent_activity_newest_first  - five entries, latest action first
"""
from datetime import timedelta

from sqlalchemy import update

from conftest import make_request
from par_tracker.db.base import utcnow
from par_tracker.db.session import unit_of_work
from par_tracker.models.request import ParRequest
from par_tracker.services import approval as approval_svc
from par_tracker.services import workflow as workflow_svc
from par_tracker.services.dashboard import get_dashboard_stats


def _submit(db):
    request = make_request(db)
    workflow_svc.submit_request(db, request.id, submitted_by="Pat Principal")
    return request


def _approve_all(db, request, roster):
    for approver in roster:
        approval_svc.approve_step(db, request.id, approver.id)


def test_empty_database(db):
    stats = get_dashboard_stats(db)
    assert stats == {
        "drafts": 0,
        "pending": 0,
        "approved": 0,
        "kicked_back": 0,
        "recent_activity": [],
    }


# ─── Counts ───────────────────────────────────────────────────────────────────

def test_counts_by_status(db, roster):
    make_request(db)
    make_request(db)
    _submit(db)
    kicked = _submit(db)
    approval_svc.kick_back(db, kicked.id, roster[0].id, kick_back_to_step=1, reason="Fund line")
    recent = _submit(db)
    _approve_all(db, recent, roster)
    stale = _submit(db)
    _approve_all(db, stale, roster)
    cancelled = make_request(db)
    workflow_svc.cancel_request(db, cancelled.id)

    with unit_of_work(db):
        db.execute(
            update(ParRequest)
            .where(ParRequest.id == stale.id)
            .values(updated_at=utcnow() - timedelta(days=45))
        )

    stats = get_dashboard_stats(db)
    assert stats["drafts"] == 2
    assert stats["pending"] == 1
    assert stats["approved"] == 1
    assert stats["kicked_back"] == 1


def test_approved_window_follows_now(db, roster):
    request = _submit(db)
    _approve_all(db, request, roster)

    assert get_dashboard_stats(db)["approved"] == 1
    assert get_dashboard_stats(db, now=utcnow() + timedelta(days=31))["approved"] == 0


# ─── Activity ─────────────────────────────────────────────────────────────────

def test_recent_activity_newest_first(db, roster):
    request = _submit(db)
    approval_svc.approve_step(db, request.id, roster[0].id)
    approval_svc.approve_step(db, request.id, roster[1].id)
    workflow_svc.cancel_request(db, request.id, cancelled_by="Pat Principal")

    activity = get_dashboard_stats(db)["recent_activity"]
    assert len(activity) == 5
    assert activity[0].action == "CANCELLED"
    assert activity[0].changed_by == "Pat Principal"
    created = [entry.created_at for entry in activity]
    assert created == sorted(created, reverse=True)

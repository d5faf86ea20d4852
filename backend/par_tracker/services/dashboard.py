"""Home-page summary: request counts by status and the latest audit entries."""
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from par_tracker.db.base import utcnow
from par_tracker.models.audit import AuditLog
from par_tracker.models.request import ParRequest, RequestStatus

APPROVED_WINDOW_DAYS = 30
RECENT_ACTIVITY_LIMIT = 5


def _count(db: Session, *filters) -> int:
    return db.execute(
        select(func.count()).select_from(ParRequest).where(*filters)
    ).scalar_one()


def get_dashboard_stats(db: Session, now: datetime | None = None) -> dict[str, Any]:
    """Counts per workflow bucket plus the newest audit log rows.

    Approved requests only count when they were last touched within the
    trailing window; the other buckets are all-time.
    """
    since = (now or utcnow()) - timedelta(days=APPROVED_WINDOW_DAYS)

    recent = db.execute(
        select(AuditLog)
        .order_by(AuditLog.created_at.desc())
        .limit(RECENT_ACTIVITY_LIMIT)
    ).scalars().all()

    return {
        "drafts": _count(db, ParRequest.status == RequestStatus.DRAFT.value),
        "pending": _count(db, ParRequest.status == RequestStatus.PENDING_APPROVAL.value),
        "approved": _count(
            db,
            ParRequest.status == RequestStatus.APPROVED.value,
            ParRequest.updated_at >= since,
        ),
        "kicked_back": _count(db, ParRequest.status == RequestStatus.KICKED_BACK.value),
        "recent_activity": recent,
    }

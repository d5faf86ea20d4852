"""Dashboard summary endpoint."""
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from par_tracker.db.session import get_session
from par_tracker.schemas.dashboard import DashboardStatsOut, RecentActivityOut
from par_tracker.services import dashboard as dashboard_svc

router = APIRouter()


@router.get(
    "",
    response_model=DashboardStatsOut,
    summary="Request counts by status and the latest activity",
)
def get_dashboard(db: Annotated[Session, Depends(get_session)]):
    stats = dashboard_svc.get_dashboard_stats(db)
    return DashboardStatsOut(
        drafts=stats["drafts"],
        pending=stats["pending"],
        approved=stats["approved"],
        kicked_back=stats["kicked_back"],
        recent_activity=[RecentActivityOut.model_validate(r) for r in stats["recent_activity"]],
    )

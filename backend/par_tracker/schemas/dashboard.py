import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict


class RecentActivityOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    entity_type: str
    action: str
    changed_by: str | None
    created_at: datetime


class DashboardStatsOut(BaseModel):
    drafts: int
    pending: int
    approved: int
    kicked_back: int
    recent_activity: list[RecentActivityOut]

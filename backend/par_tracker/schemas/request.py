"""Pydantic schemas for PAR requests and their approval chain."""
import uuid
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from par_tracker.models.request import EmploymentType, PositionDuration, RequestType
from par_tracker.schemas.approver import ApproverSummary


# ─── Approval step output ───

class ApprovalStepOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    step_order: int
    status: str
    approver_id: uuid.UUID
    approver: ApproverSummary  # live reference, current name/title
    approved_by: str | None
    approved_at: datetime | None
    kick_back_reason: str | None
    kick_back_to_step: int | None


# ─── Request input ───

class ParRequestCreate(BaseModel):
    position: str | None = Field(None, max_length=255)
    location: str | None = Field(None, max_length=255)
    fund_line: str | None = Field(None, max_length=255)
    request_type: RequestType
    employment_type: EmploymentType
    position_duration: PositionDuration
    new_employee_name: str | None = Field(None, max_length=255)
    start_date: date | None = None
    replaced_person: str | None = Field(None, max_length=255)
    notes: str | None = Field(None, max_length=5000)
    submitted_by: str | None = Field(None, max_length=255)


class ParRequestUpdate(BaseModel):
    position: str | None = Field(None, max_length=255)
    location: str | None = Field(None, max_length=255)
    fund_line: str | None = Field(None, max_length=255)
    request_type: RequestType | None = None
    employment_type: EmploymentType | None = None
    position_duration: PositionDuration | None = None
    new_employee_name: str | None = Field(None, max_length=255)
    start_date: date | None = None
    replaced_person: str | None = Field(None, max_length=255)
    notes: str | None = Field(None, max_length=5000)
    changed_by: str | None = Field(None, max_length=255)


class SubmitIn(BaseModel):
    submitted_by: str = Field(..., min_length=1, max_length=255)


class CancelIn(BaseModel):
    cancelled_by: str | None = Field(None, max_length=255)


# ─── Request output ───

class ParRequestOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    job_id: str
    status: str
    position: str | None
    location: str | None
    fund_line: str | None
    request_type: str
    employment_type: str
    position_duration: str
    new_employee_name: str | None
    start_date: date | None
    replaced_person: str | None
    notes: str | None
    submitted_by: str | None
    submitted_at: datetime | None
    created_at: datetime
    updated_at: datetime
    approval_steps: list[ApprovalStepOut] = []


class ParRequestListResponse(BaseModel):
    items: list[ParRequestOut]
    total: int
    page: int
    limit: int
    total_pages: int

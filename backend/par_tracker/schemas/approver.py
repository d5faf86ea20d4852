"""Pydantic schemas for the approver roster and delegates."""
import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field


# ─── Delegates ───

class DelegateIn(BaseModel):
    delegate_name: str = Field(..., min_length=1, max_length=255)
    delegate_email: EmailStr | None = None
    changed_by: str | None = Field(None, max_length=255)


class DelegateOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    approver_id: uuid.UUID
    delegate_name: str
    delegate_email: str | None
    is_active: bool
    created_at: datetime


# ─── Approvers ───

class ApproverIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    title: str = Field(..., min_length=1, max_length=255)
    email: EmailStr | None = None
    changed_by: str | None = Field(None, max_length=255)


class ApproverUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    title: str | None = Field(None, min_length=1, max_length=255)
    email: EmailStr | None = None
    sort_order: int | None = None
    is_active: bool | None = None
    changed_by: str | None = Field(None, max_length=255)


class ApproverReorderIn(BaseModel):
    approver_ids: list[uuid.UUID] = Field(..., min_length=1)
    changed_by: str | None = Field(None, max_length=255)


class ApproverSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    title: str
    email: str | None


class ApproverOut(ApproverSummary):
    sort_order: int
    is_active: bool
    delegates: list[DelegateOut] = []
    created_at: datetime
    updated_at: datetime

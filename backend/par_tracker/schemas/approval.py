"""Pydantic schemas for approval actions and the approval queue."""
from typing import Annotated, Literal, Union
import uuid

from pydantic import BaseModel, Field

from par_tracker.schemas.request import ApprovalStepOut, ParRequestOut


# ─── Decision request bodies ───

class ApproveActionIn(BaseModel):
    action: Literal["approve"]
    approver_id: uuid.UUID
    acting_as: str | None = Field(None, max_length=255)


class KickBackActionIn(BaseModel):
    action: Literal["kick_back"]
    approver_id: uuid.UUID
    kick_back_to_step: int = Field(..., ge=1)
    reason: str | None = Field(None, max_length=1000)
    acting_as: str | None = Field(None, max_length=255)


ApprovalActionIn = Annotated[
    Union[ApproveActionIn, KickBackActionIn],
    Field(discriminator="action"),
]


# ─── Queue ───

class QueueItemOut(BaseModel):
    step: ApprovalStepOut
    request: ParRequestOut


class QueueResponse(BaseModel):
    items: list[QueueItemOut]
    total: int

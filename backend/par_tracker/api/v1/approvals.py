"""Approval queue endpoint.

  GET /approvals/queue?approver_id=<uuid> - requests whose current step is
      assigned to the approver, oldest first.
"""
import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from par_tracker.db.session import get_session
from par_tracker.schemas.approval import QueueItemOut, QueueResponse
from par_tracker.schemas.request import ApprovalStepOut, ParRequestOut
from par_tracker.services import approval as approval_svc

router = APIRouter()


@router.get(
    "/queue",
    response_model=QueueResponse,
    summary="List requests waiting on an approver",
)
def approval_queue(
    db: Annotated[Session, Depends(get_session)],
    approver_id: uuid.UUID = Query(..., description="Approver whose queue to project"),
):
    items = [
        QueueItemOut(
            step=ApprovalStepOut.model_validate(step),
            request=ParRequestOut.model_validate(request),
        )
        for step, request in approval_svc.queue_for(db, approver_id)
    ]
    return QueueResponse(items=items, total=len(items))

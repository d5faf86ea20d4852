"""PAR request API endpoints.

  GET   /requests                       - list (status filter, search, paging)
  POST  /requests                       - create a DRAFT request
  GET   /requests/{request_id}          - detail with approval chain
  PATCH /requests/{request_id}          - edit a DRAFT / KICKED_BACK request
  POST  /requests/{request_id}/submit   - submit or resubmit
  POST  /requests/{request_id}/cancel   - cancel
  POST  /requests/{request_id}/approve  - approve or kick back (by "action")

Domain errors are mapped to HTTP statuses by the app-level handler.
"""
import logging
import uuid
from typing import Annotated

from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.orm import Session

from par_tracker.db.session import get_session
from par_tracker.models.request import RequestStatus
from par_tracker.schemas.approval import ApprovalActionIn, KickBackActionIn
from par_tracker.schemas.request import (
    CancelIn,
    ParRequestCreate,
    ParRequestListResponse,
    ParRequestOut,
    ParRequestUpdate,
    SubmitIn,
)
from par_tracker.services import approval as approval_svc
from par_tracker.services import requests as requests_svc
from par_tracker.services import workflow as workflow_svc
from par_tracker.services.pagination import effective_limit, total_pages

logger = logging.getLogger(__name__)

router = APIRouter()


def _out(db: Session, request_id: uuid.UUID) -> ParRequestOut:
    return ParRequestOut.model_validate(requests_svc.get_request(db, request_id))


@router.get(
    "",
    response_model=ParRequestListResponse,
    summary="List PAR requests",
)
def list_requests(
    db: Annotated[Session, Depends(get_session)],
    status_filter: RequestStatus | None = Query(None, alias="status"),
    search: str | None = Query(None, max_length=255),
    page: int = Query(1, ge=1),
    limit: int | None = Query(None, ge=1),
):
    items, total = requests_svc.list_requests(
        db,
        status=status_filter.value if status_filter else None,
        search=search,
        page=page,
        limit=limit,
    )
    page_size = effective_limit(limit)
    return ParRequestListResponse(
        items=[ParRequestOut.model_validate(r) for r in items],
        total=total,
        page=page,
        limit=page_size,
        total_pages=total_pages(total, page_size),
    )


@router.post(
    "",
    response_model=ParRequestOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create a DRAFT request",
)
def create_request(
    body: ParRequestCreate,
    db: Annotated[Session, Depends(get_session)],
):
    data = body.model_dump(exclude={"submitted_by"})
    request = requests_svc.create_request(db, data, created_by=body.submitted_by)
    return _out(db, request.id)


@router.get(
    "/{request_id}",
    response_model=ParRequestOut,
    summary="Get a request with its approval chain",
)
def get_request(
    request_id: uuid.UUID,
    db: Annotated[Session, Depends(get_session)],
):
    return _out(db, request_id)


@router.patch(
    "/{request_id}",
    response_model=ParRequestOut,
    summary="Edit a DRAFT or KICKED_BACK request",
)
def update_request(
    request_id: uuid.UUID,
    body: ParRequestUpdate,
    db: Annotated[Session, Depends(get_session)],
):
    data = body.model_dump(exclude_unset=True, exclude={"changed_by"})
    requests_svc.update_request(db, request_id, data, changed_by=body.changed_by)
    return _out(db, request_id)


@router.post(
    "/{request_id}/submit",
    response_model=ParRequestOut,
    summary="Submit (or resubmit) a request for approval",
)
def submit_request(
    request_id: uuid.UUID,
    body: SubmitIn,
    db: Annotated[Session, Depends(get_session)],
):
    workflow_svc.submit_request(db, request_id, submitted_by=body.submitted_by)
    return _out(db, request_id)


@router.post(
    "/{request_id}/cancel",
    response_model=ParRequestOut,
    summary="Cancel a request",
)
def cancel_request(
    request_id: uuid.UUID,
    db: Annotated[Session, Depends(get_session)],
    body: CancelIn | None = None,
):
    workflow_svc.cancel_request(
        db, request_id, cancelled_by=body.cancelled_by if body else None
    )
    return _out(db, request_id)


@router.post(
    "/{request_id}/approve",
    response_model=ParRequestOut,
    summary="Approve the current step or kick the request back",
)
def approval_action(
    request_id: uuid.UUID,
    body: Annotated[ApprovalActionIn, Body()],
    db: Annotated[Session, Depends(get_session)],
):
    if isinstance(body, KickBackActionIn):
        approval_svc.kick_back(
            db,
            request_id=request_id,
            approver_id=body.approver_id,
            kick_back_to_step=body.kick_back_to_step,
            reason=body.reason,
            acting_as=body.acting_as,
        )
    else:
        approval_svc.approve_step(
            db,
            request_id=request_id,
            approver_id=body.approver_id,
            acting_as=body.acting_as,
        )
    return _out(db, request_id)

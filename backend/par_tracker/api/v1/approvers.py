"""Approver roster and delegate API endpoints."""
import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from par_tracker.db.session import get_session
from par_tracker.schemas.approver import (
    ApproverIn,
    ApproverOut,
    ApproverReorderIn,
    ApproverUpdate,
    DelegateIn,
    DelegateOut,
)
from par_tracker.services import approvers as approvers_svc

router = APIRouter()


# ─── Approvers ───

@router.get(
    "",
    response_model=list[ApproverOut],
    summary="List approvers in chain order",
)
def list_approvers(
    db: Annotated[Session, Depends(get_session)],
    active_only: bool = Query(False, description="Only active approvers and delegates"),
):
    return [
        ApproverOut.model_validate(a)
        for a in approvers_svc.list_approvers(db, active_only=active_only)
    ]


@router.post(
    "",
    response_model=ApproverOut,
    status_code=status.HTTP_201_CREATED,
    summary="Add an approver to the end of the chain",
)
def create_approver(
    body: ApproverIn,
    db: Annotated[Session, Depends(get_session)],
):
    approver = approvers_svc.create_approver(
        db, name=body.name, title=body.title, email=body.email, changed_by=body.changed_by
    )
    return ApproverOut.model_validate(approvers_svc.get_approver(db, approver.id))


@router.post(
    "/reorder",
    response_model=list[ApproverOut],
    summary="Reorder the approval chain",
)
def reorder_approvers(
    body: ApproverReorderIn,
    db: Annotated[Session, Depends(get_session)],
):
    approvers_svc.reorder_approvers(db, body.approver_ids, changed_by=body.changed_by)
    return [ApproverOut.model_validate(a) for a in approvers_svc.list_approvers(db)]


@router.patch(
    "/{approver_id}",
    response_model=ApproverOut,
    summary="Update an approver",
)
def update_approver(
    approver_id: uuid.UUID,
    body: ApproverUpdate,
    db: Annotated[Session, Depends(get_session)],
):
    data = body.model_dump(exclude_unset=True, exclude={"changed_by"})
    approvers_svc.update_approver(db, approver_id, data, changed_by=body.changed_by)
    return ApproverOut.model_validate(approvers_svc.get_approver(db, approver_id))


@router.delete(
    "/{approver_id}",
    response_model=ApproverOut,
    summary="Deactivate an approver (soft delete)",
)
def deactivate_approver(
    approver_id: uuid.UUID,
    db: Annotated[Session, Depends(get_session)],
    changed_by: str | None = Query(None, max_length=255),
):
    approvers_svc.deactivate_approver(db, approver_id, changed_by=changed_by)
    return ApproverOut.model_validate(approvers_svc.get_approver(db, approver_id))


# ─── Delegates ───

@router.post(
    "/{approver_id}/delegates",
    response_model=DelegateOut,
    status_code=status.HTTP_201_CREATED,
    summary="Add a delegate to an approver",
)
def add_delegate(
    approver_id: uuid.UUID,
    body: DelegateIn,
    db: Annotated[Session, Depends(get_session)],
):
    delegate = approvers_svc.add_delegate(
        db,
        approver_id,
        delegate_name=body.delegate_name,
        delegate_email=body.delegate_email,
        changed_by=body.changed_by,
    )
    return DelegateOut.model_validate(delegate)


@router.delete(
    "/{approver_id}/delegates/{delegate_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove a delegate (hard delete)",
)
def remove_delegate(
    approver_id: uuid.UUID,
    delegate_id: uuid.UUID,
    db: Annotated[Session, Depends(get_session)],
    changed_by: str | None = Query(None, max_length=255),
):
    approvers_svc.remove_delegate(db, approver_id, delegate_id, changed_by=changed_by)

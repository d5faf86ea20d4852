"""PAR request records: create, edit, fetch and list."""
import enum
import logging
import uuid
from typing import Any

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session, selectinload

from par_tracker.core.exceptions import InvalidStateError, RequestNotFoundError
from par_tracker.db.session import unit_of_work
from par_tracker.models.approval import ApprovalStep
from par_tracker.models.approver import Approver
from par_tracker.models.audit import AuditAction, AuditEntityType
from par_tracker.models.request import TRACKED_FIELDS, ParRequest, RequestStatus
from par_tracker.services import audit as audit_svc
from par_tracker.services.job_id import next_job_id
from par_tracker.services.pagination import effective_limit

logger = logging.getLogger(__name__)

EDITABLE_STATUSES = (RequestStatus.DRAFT.value, RequestStatus.KICKED_BACK.value)

_FREE_TEXT_FIELDS = (
    "position",
    "location",
    "fund_line",
    "new_employee_name",
    "replaced_person",
    "notes",
)


def _with_chain():
    return selectinload(ParRequest.approval_steps).selectinload(ApprovalStep.approver).selectinload(
        Approver.delegates
    )


def _clean(data: dict[str, Any]) -> dict[str, Any]:
    """Trim free-text fields and store blanks as None; enums become plain strings."""
    cleaned: dict[str, Any] = {}
    for field, value in data.items():
        if field in _FREE_TEXT_FIELDS and isinstance(value, str):
            value = value.strip() or None
        elif isinstance(value, enum.Enum):
            value = value.value
        cleaned[field] = value
    return cleaned


def create_request(
    db: Session,
    data: dict[str, Any],
    created_by: str | None = None,
) -> ParRequest:
    """Create a DRAFT request with a freshly allocated job id.

    The job id counter is advanced in the same transaction as the insert,
    so a failed insert does not burn a sequence number.
    """
    with unit_of_work(db):
        job_id = next_job_id(db)
        request = ParRequest(
            job_id=job_id,
            status=RequestStatus.DRAFT.value,
            submitted_by=(created_by or "").strip() or None,
            **_clean({k: v for k, v in data.items() if k in TRACKED_FIELDS}),
        )
        db.add(request)
        db.flush()

        audit_svc.record(
            db,
            entity_type=AuditEntityType.PAR_REQUEST,
            entity_id=request.id,
            action=AuditAction.CREATED,
            changed_by=created_by,
            metadata={"job_id": job_id},
        )

    logger.info("Request %s created by %s", job_id, created_by)
    return request


def update_request(
    db: Session,
    request_id: uuid.UUID,
    data: dict[str, Any],
    changed_by: str | None = None,
) -> ParRequest:
    """Apply a partial edit to a DRAFT or KICKED_BACK request and audit the diff."""
    with unit_of_work(db):
        request = db.execute(
            select(ParRequest).where(ParRequest.id == request_id).with_for_update()
        ).scalars().first()
        if request is None:
            raise RequestNotFoundError(request_id)
        if request.status not in EDITABLE_STATUSES:
            raise InvalidStateError(
                f"Only DRAFT or KICKED_BACK requests can be edited (status={request.status}).",
                current_status=request.status,
            )

        before = {field: getattr(request, field) for field in TRACKED_FIELDS}
        for field, value in _clean(data).items():
            if field in TRACKED_FIELDS:
                setattr(request, field, value)
        after = {field: getattr(request, field) for field in TRACKED_FIELDS}
        db.flush()

        changes = audit_svc.compute_changes(before, after, TRACKED_FIELDS)
        if changes:
            audit_svc.record(
                db,
                entity_type=AuditEntityType.PAR_REQUEST,
                entity_id=request.id,
                action=AuditAction.UPDATED,
                changed_by=changed_by,
                changes=changes,
            )

    return request


def get_request(db: Session, request_id: uuid.UUID) -> ParRequest:
    """Fetch a request with its approval chain loaded."""
    request = db.execute(
        select(ParRequest)
        .where(ParRequest.id == request_id)
        .options(_with_chain())
        .execution_options(populate_existing=True)
    ).scalars().first()
    if request is None:
        raise RequestNotFoundError(request_id)
    return request


def list_requests(
    db: Session,
    status: str | None = None,
    search: str | None = None,
    page: int = 1,
    limit: int | None = None,
) -> tuple[list[ParRequest], int]:
    """Return one page of requests (newest first) and the total match count."""
    limit = effective_limit(limit)
    page = max(page, 1)

    filters = []
    if status:
        filters.append(ParRequest.status == status)
    if search and search.strip():
        pattern = f"%{search.strip().lower()}%"
        filters.append(
            or_(
                func.lower(ParRequest.job_id).like(pattern),
                func.lower(ParRequest.submitted_by).like(pattern),
                func.lower(ParRequest.new_employee_name).like(pattern),
                func.lower(ParRequest.replaced_person).like(pattern),
                func.lower(ParRequest.notes).like(pattern),
            )
        )

    total = db.execute(
        select(func.count()).select_from(ParRequest).where(*filters)
    ).scalar_one()
    rows = db.execute(
        select(ParRequest)
        .where(*filters)
        .options(_with_chain())
        .order_by(ParRequest.created_at.desc(), ParRequest.job_id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    ).scalars().all()
    return list(rows), total

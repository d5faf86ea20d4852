"""Read-only audit log endpoint."""
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from par_tracker.db.session import get_session
from par_tracker.models.audit import AuditAction, AuditEntityType
from par_tracker.schemas.audit import AuditLogListResponse, AuditLogOut
from par_tracker.services import audit as audit_svc
from par_tracker.services.pagination import effective_limit, total_pages

router = APIRouter()


@router.get(
    "",
    response_model=AuditLogListResponse,
    summary="List audit log entries, newest first",
)
def list_audit_logs(
    db: Annotated[Session, Depends(get_session)],
    entity_type: AuditEntityType | None = Query(None),
    entity_id: str | None = Query(None, max_length=64),
    action: AuditAction | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int | None = Query(None, ge=1),
):
    rows, total = audit_svc.list_audit_logs(
        db,
        entity_type=entity_type.value if entity_type else None,
        entity_id=entity_id,
        action=action.value if action else None,
        page=page,
        limit=limit,
    )
    page_size = effective_limit(limit)
    return AuditLogListResponse(
        items=[AuditLogOut.model_validate(r) for r in rows],
        total=total,
        page=page,
        limit=page_size,
        total_pages=total_pages(total, page_size),
    )

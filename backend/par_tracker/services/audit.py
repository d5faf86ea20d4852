"""Audit log helper: append-only writes to the audit_logs table."""
import logging
import uuid
from datetime import date, datetime
from enum import Enum
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from par_tracker.models.audit import AuditLog
from par_tracker.services.pagination import effective_limit

logger = logging.getLogger(__name__)


def record(
    db: Session,
    entity_type: str,
    entity_id: uuid.UUID | str,
    action: str,
    changed_by: str | None = None,
    changes: dict[str, dict[str, Any]] | None = None,
    metadata: dict[str, Any] | None = None,
) -> AuditLog | None:
    """Write a single audit log entry inside the caller's transaction.

    The insert runs in a SAVEPOINT. If it fails, the savepoint is rolled
    back and the failure logged, leaving the surrounding workflow change
    intact; the caller still controls the commit.

    Args:
        db: Sync SQLAlchemy session with an open unit of work.
        entity_type: AuditEntityType value, e.g. 'PAR_REQUEST'.
        entity_id: PK of the affected record (or a marker such as 'reorder').
        action: AuditAction value, e.g. 'SUBMITTED'.
        changed_by: Denormalised display name of the acting identity.
        changes: Field diff as produced by compute_changes.
        metadata: Free-form JSON-serialisable context.

    Returns:
        The AuditLog row, or None when the write failed.
    """
    entry = AuditLog(
        entity_type=_plain(entity_type),
        entity_id=str(entity_id),
        action=_plain(action),
        changed_by=changed_by,
        changes=changes,
        metadata_=_jsonable(metadata) if metadata is not None else None,
    )
    # Workflow writes must fail loudly, so flush them outside the savepoint
    db.flush()
    try:
        with db.begin_nested():
            db.add(entry)
    except SQLAlchemyError:
        logger.exception("Audit write failed: %s %s/%s", action, entity_type, entity_id)
        return None
    logger.debug("Audit: %s %s/%s", _plain(action), _plain(entity_type), entity_id)
    return entry


def compute_changes(
    old: dict[str, Any],
    new: dict[str, Any],
    fields: tuple[str, ...] | list[str] | None = None,
) -> dict[str, dict[str, Any]] | None:
    """Return {field: {"old": ..., "new": ...}} for every field that changed.

    Dates and datetimes are compared by their ISO form. Returns None when
    nothing changed.
    """
    changes: dict[str, dict[str, Any]] = {}
    for field in fields if fields is not None else new.keys():
        old_val = _comparable(old.get(field))
        new_val = _comparable(new.get(field))
        if old_val != new_val:
            changes[field] = {"old": old_val, "new": new_val}
    return changes or None


def list_audit_logs(
    db: Session,
    entity_type: str | None = None,
    entity_id: str | None = None,
    action: str | None = None,
    page: int = 1,
    limit: int | None = None,
) -> tuple[list[AuditLog], int]:
    """Return one page of audit entries (newest first) and the total count."""
    limit = effective_limit(limit)
    page = max(page, 1)

    filters = []
    if entity_type:
        filters.append(AuditLog.entity_type == entity_type)
    if entity_id:
        filters.append(AuditLog.entity_id == entity_id)
    if action:
        filters.append(AuditLog.action == action)

    total = db.execute(
        select(func.count()).select_from(AuditLog).where(*filters)
    ).scalar_one()
    rows = db.execute(
        select(AuditLog)
        .where(*filters)
        .order_by(AuditLog.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    ).scalars().all()
    return list(rows), total


# ─── Internal helpers ───

def _plain(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _comparable(value: Any) -> Any:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, uuid.UUID):
        return str(value)
    return _plain(value)


def _jsonable(metadata: dict[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key, value in metadata.items():
        if isinstance(value, list):
            out[key] = [_comparable(v) for v in value]
        else:
            out[key] = _comparable(value)
    return out

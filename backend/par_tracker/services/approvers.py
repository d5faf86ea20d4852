"""Approver roster administration.

Roster edits change who is picked up by the next materialization only;
chains already bound to requests are never touched from here.
"""
import logging
import uuid
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from par_tracker.core.exceptions import (
    ApproverNotFoundError,
    DelegateNotFoundError,
    DuplicateDelegateError,
)
from par_tracker.db.session import unit_of_work
from par_tracker.models.approver import Approver, ApproverDelegate
from par_tracker.models.audit import AuditAction, AuditEntityType
from par_tracker.services import audit as audit_svc

logger = logging.getLogger(__name__)

APPROVER_FIELDS = ("name", "title", "email", "sort_order", "is_active")


def list_approvers(db: Session, active_only: bool = False) -> list[Approver]:
    """Approvers in chain order with delegates loaded.

    With ``active_only`` both inactive approvers and inactive delegates are
    left out.
    """
    stmt = select(Approver).order_by(Approver.sort_order.asc(), Approver.name.asc())
    delegates = Approver.delegates
    if active_only:
        stmt = stmt.where(Approver.is_active.is_(True))
        delegates = Approver.delegates.and_(ApproverDelegate.is_active.is_(True))
    stmt = stmt.options(selectinload(delegates)).execution_options(populate_existing=True)
    return list(db.execute(stmt).scalars().all())


def get_approver(db: Session, approver_id: uuid.UUID) -> Approver:
    approver = db.execute(
        select(Approver)
        .where(Approver.id == approver_id)
        .options(selectinload(Approver.delegates))
    ).scalars().first()
    if approver is None:
        raise ApproverNotFoundError(approver_id)
    return approver


def create_approver(
    db: Session,
    name: str,
    title: str,
    email: str | None = None,
    changed_by: str | None = None,
) -> Approver:
    """Append a new approver to the end of the chain."""
    with unit_of_work(db):
        max_sort = db.execute(select(func.max(Approver.sort_order))).scalar()
        approver = Approver(
            name=name.strip(),
            title=title.strip(),
            email=(email or "").strip() or None,
            sort_order=(max_sort or 0) + 1,
            is_active=True,
        )
        db.add(approver)
        db.flush()

        audit_svc.record(
            db,
            entity_type=AuditEntityType.APPROVER,
            entity_id=approver.id,
            action=AuditAction.CREATED,
            changed_by=changed_by,
            metadata={"name": approver.name, "title": approver.title},
        )

    logger.info("Approver %s created at position %s", approver.name, approver.sort_order)
    return approver


def update_approver(
    db: Session,
    approver_id: uuid.UUID,
    data: dict[str, Any],
    changed_by: str | None = None,
) -> Approver:
    """Partial update. Deactivation is audited as DELETED (soft delete)."""
    with unit_of_work(db):
        approver = get_approver(db, approver_id)
        before = {field: getattr(approver, field) for field in APPROVER_FIELDS}

        for field, value in data.items():
            if field not in APPROVER_FIELDS:
                continue
            if field in ("name", "title") and isinstance(value, str):
                value = value.strip()
            elif field == "email" and isinstance(value, str):
                value = value.strip() or None
            setattr(approver, field, value)

        after = {field: getattr(approver, field) for field in APPROVER_FIELDS}
        db.flush()

        changes = audit_svc.compute_changes(before, after, APPROVER_FIELDS)
        if changes:
            action = (
                AuditAction.DELETED if data.get("is_active") is False else AuditAction.UPDATED
            )
            audit_svc.record(
                db,
                entity_type=AuditEntityType.APPROVER,
                entity_id=approver.id,
                action=action,
                changed_by=changed_by,
                changes=changes,
            )

    return approver


def deactivate_approver(
    db: Session, approver_id: uuid.UUID, changed_by: str | None = None
) -> Approver:
    return update_approver(db, approver_id, {"is_active": False}, changed_by=changed_by)


def reorder_approvers(
    db: Session,
    approver_ids: list[uuid.UUID],
    changed_by: str | None = None,
) -> list[Approver]:
    """Set sort_order to each approver's 1-based position in ``approver_ids``.

    Raises:
        ApproverNotFoundError: If any id is unknown; nothing is changed.
    """
    with unit_of_work(db):
        approvers = {
            a.id: a
            for a in db.execute(
                select(Approver).where(Approver.id.in_(approver_ids))
            ).scalars().all()
        }
        for approver_id in approver_ids:
            if approver_id not in approvers:
                raise ApproverNotFoundError(approver_id)

        for position, approver_id in enumerate(approver_ids, start=1):
            approvers[approver_id].sort_order = position
        db.flush()

        audit_svc.record(
            db,
            entity_type=AuditEntityType.APPROVER,
            entity_id="reorder",
            action=AuditAction.UPDATED,
            changed_by=changed_by,
            metadata={"action": "reorder", "new_order": list(approver_ids)},
        )

    return [approvers[approver_id] for approver_id in approver_ids]


# ─── Delegates ───

def add_delegate(
    db: Session,
    approver_id: uuid.UUID,
    delegate_name: str,
    delegate_email: str | None = None,
    changed_by: str | None = None,
) -> ApproverDelegate:
    with unit_of_work(db):
        approver = get_approver(db, approver_id)
        name = delegate_name.strip()
        if any(d.delegate_name == name for d in approver.delegates):
            raise DuplicateDelegateError(name)

        delegate = ApproverDelegate(
            approver_id=approver.id,
            delegate_name=name,
            delegate_email=(delegate_email or "").strip() or None,
            is_active=True,
        )
        db.add(delegate)
        db.flush()

        audit_svc.record(
            db,
            entity_type=AuditEntityType.APPROVER_DELEGATE,
            entity_id=delegate.id,
            action=AuditAction.CREATED,
            changed_by=changed_by,
            metadata={
                "approver_id": approver.id,
                "approver_name": approver.name,
                "delegate_name": delegate.delegate_name,
            },
        )

    db.expire(approver, ["delegates"])
    return delegate


def remove_delegate(
    db: Session,
    approver_id: uuid.UUID,
    delegate_id: uuid.UUID,
    changed_by: str | None = None,
) -> None:
    """Hard-delete a delegate. Past approvals keep the frozen acting name."""
    with unit_of_work(db):
        delegate = db.execute(
            select(ApproverDelegate)
            .where(
                ApproverDelegate.id == delegate_id,
                ApproverDelegate.approver_id == approver_id,
            )
            .options(selectinload(ApproverDelegate.approver))
        ).scalars().first()
        if delegate is None:
            raise DelegateNotFoundError(delegate_id)

        approver = delegate.approver
        approver_name = approver.name
        delegate_name = delegate.delegate_name
        db.delete(delegate)
        db.flush()

        audit_svc.record(
            db,
            entity_type=AuditEntityType.APPROVER_DELEGATE,
            entity_id=delegate_id,
            action=AuditAction.DELETED,
            changed_by=changed_by,
            metadata={"approver_name": approver_name, "delegate_name": delegate_name},
        )

    db.expire(approver, ["delegates"])

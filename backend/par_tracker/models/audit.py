import enum
import uuid
from datetime import datetime

from sqlalchemy import JSON, DateTime, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from par_tracker.db.base import Base, utcnow


class AuditEntityType(str, enum.Enum):
    PAR_REQUEST = "PAR_REQUEST"
    APPROVAL_STEP = "APPROVAL_STEP"
    APPROVER = "APPROVER"
    APPROVER_DELEGATE = "APPROVER_DELEGATE"


class AuditAction(str, enum.Enum):
    CREATED = "CREATED"
    UPDATED = "UPDATED"
    DELETED = "DELETED"
    SUBMITTED = "SUBMITTED"
    RESUBMITTED = "RESUBMITTED"
    APPROVED = "APPROVED"
    KICKED_BACK = "KICKED_BACK"
    CANCELLED = "CANCELLED"


class AuditLog(Base):
    """Immutable audit trail for request edits, workflow transitions and roster changes."""

    __tablename__ = "audit_logs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    entity_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)  # uuid, or "reorder"
    action: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    changed_by: Mapped[str | None] = mapped_column(String(255), nullable=True)  # denormalized display name
    changes: Mapped[dict | None] = mapped_column(JSON, nullable=True)  # {field: {old, new}}
    metadata_: Mapped[dict | None] = mapped_column("metadata", JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False, index=True
    )

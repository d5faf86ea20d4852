import enum
import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from par_tracker.db.base import Base, TimestampMixin, UUIDMixin


class StepStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    KICKED_BACK = "KICKED_BACK"


class ApprovalStep(Base, UUIDMixin, TimestampMixin):
    """One link in a request's materialized approval chain.

    The approver is a live reference; approved_by and kick_back_reason are
    frozen strings recording who actually acted.
    """

    __tablename__ = "approval_steps"
    __table_args__ = (
        UniqueConstraint("request_id", "step_order", name="uq_approval_steps_request_step"),
    )

    request_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("par_requests.id", ondelete="CASCADE"), nullable=False, index=True
    )
    approver_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("approvers.id"), nullable=False, index=True
    )
    step_order: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default=StepStatus.PENDING.value
    )  # PENDING, APPROVED, KICKED_BACK
    approved_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    kick_back_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    kick_back_to_step: Mapped[int | None] = mapped_column(Integer, nullable=True)

    request: Mapped["ParRequest"] = relationship("ParRequest", back_populates="approval_steps")
    approver: Mapped["Approver"] = relationship("Approver")

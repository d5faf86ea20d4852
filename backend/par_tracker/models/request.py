import enum
import uuid
from datetime import date, datetime

from sqlalchemy import Date, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from par_tracker.db.base import Base, TimestampMixin, UUIDMixin


class RequestStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    PENDING_APPROVAL = "PENDING_APPROVAL"
    APPROVED = "APPROVED"
    KICKED_BACK = "KICKED_BACK"
    CANCELLED = "CANCELLED"


class RequestType(str, enum.Enum):
    NEW = "NEW"
    REPLACEMENT = "REPLACEMENT"


class EmploymentType(str, enum.Enum):
    FULL_TIME = "FULL_TIME"
    PART_TIME = "PART_TIME"


class PositionDuration(str, enum.Enum):
    TEMPORARY = "TEMPORARY"
    REGULAR = "REGULAR"


# Descriptive fields whose edits are diffed into the audit log
TRACKED_FIELDS = (
    "position",
    "location",
    "fund_line",
    "request_type",
    "employment_type",
    "position_duration",
    "new_employee_name",
    "start_date",
    "replaced_person",
    "notes",
)


class ParRequest(Base, UUIDMixin, TimestampMixin):
    """A position authorization request moving through the approval chain."""

    __tablename__ = "par_requests"

    job_id: Mapped[str] = mapped_column(String(32), unique=True, nullable=False, index=True)
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default=RequestStatus.DRAFT.value, index=True
    )

    position: Mapped[str | None] = mapped_column(String(255), nullable=True)
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    fund_line: Mapped[str | None] = mapped_column(String(255), nullable=True)
    request_type: Mapped[str] = mapped_column(String(32), nullable=False)
    employment_type: Mapped[str] = mapped_column(String(32), nullable=False)
    position_duration: Mapped[str] = mapped_column(String(32), nullable=False)
    new_employee_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    replaced_person: Mapped[str | None] = mapped_column(String(255), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    submitted_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    approval_steps: Mapped[list["ApprovalStep"]] = relationship(
        "ApprovalStep",
        back_populates="request",
        order_by="ApprovalStep.step_order",
        cascade="all, delete-orphan",
    )

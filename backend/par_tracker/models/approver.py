"""Global approval chain roster: approvers and their delegates."""
import uuid

from sqlalchemy import Boolean, ForeignKey, Integer, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from par_tracker.db.base import Base, TimestampMixin, UUIDMixin


class Approver(Base, UUIDMixin, TimestampMixin):
    """A named role in the ordered, global approval chain."""

    __tablename__ = "approvers"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)  # soft delete

    delegates: Mapped[list["ApproverDelegate"]] = relationship(
        "ApproverDelegate",
        back_populates="approver",
        order_by="ApproverDelegate.delegate_name",
        cascade="all, delete-orphan",
    )

    def can_be_acted_for_by(self, acting_as: str) -> bool:
        """True when ``acting_as`` is this approver or one of its active delegates.

        Names are compared exactly; the caller has already authenticated the
        acting identity.
        """
        if acting_as == self.name:
            return True
        return any(d.is_active and d.delegate_name == acting_as for d in self.delegates)


class ApproverDelegate(Base, UUIDMixin, TimestampMixin):
    """An alternate identity allowed to act on any step assigned to its approver.

    Hard-deleted on removal. Steps only ever store the acting display name,
    never a delegate id.
    """

    __tablename__ = "approver_delegates"
    __table_args__ = (
        UniqueConstraint("approver_id", "delegate_name", name="uq_approver_delegates_name"),
    )

    approver_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("approvers.id", ondelete="CASCADE"), nullable=False, index=True
    )
    delegate_name: Mapped[str] = mapped_column(String(255), nullable=False)
    delegate_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    approver: Mapped["Approver"] = relationship("Approver", back_populates="delegates")

from sqlalchemy import Integer
from sqlalchemy.orm import Mapped, mapped_column

from par_tracker.db.base import Base

COUNTER_ROW_ID = 1


class JobIdCounter(Base):
    """Single-row sequence register backing PAR-YYYY-NNNN job ids."""

    __tablename__ = "job_id_counters"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=COUNTER_ROW_ID)
    current_year: Mapped[int] = mapped_column(Integer, nullable=False)
    current_sequence: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

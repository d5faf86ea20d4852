"""Job identifier allocation.

Job ids look like PAR-2026-0001. The sequence lives in a single counter row
that is locked for the read-modify-write, so concurrent allocators are
serialized by the database and never hand out the same id. The sequence
restarts at 1 the first time an id is requested in a new calendar year.
"""
import logging
from datetime import date

from sqlalchemy import select
from sqlalchemy.orm import Session

from par_tracker.core.config import settings
from par_tracker.db.session import unit_of_work
from par_tracker.models.job_id import COUNTER_ROW_ID, JobIdCounter

logger = logging.getLogger(__name__)


def format_job_id(year: int, sequence: int, prefix: str | None = None) -> str:
    """Format as PREFIX-YYYY-NNNN; sequences past 9999 simply widen."""
    return f"{prefix or settings.JOB_ID_PREFIX}-{year}-{sequence:04d}"


def next_job_id(db: Session, today: date | None = None) -> str:
    """Advance the counter inside the caller's transaction and return the new id.

    The counter row stays locked until the caller commits or rolls back, so
    an id is only consumed if the surrounding unit of work succeeds.
    """
    year = (today or date.today()).year

    counter = db.execute(
        select(JobIdCounter)
        .where(JobIdCounter.id == COUNTER_ROW_ID)
        .with_for_update()
        .execution_options(populate_existing=True)
    ).scalars().first()

    if counter is None:
        # Only reached on a schema built without the initial migration
        logger.warning("Job id counter row missing; creating it")
        counter = JobIdCounter(id=COUNTER_ROW_ID, current_year=year, current_sequence=1)
        db.add(counter)
    elif counter.current_year != year:
        logger.info(
            "Job id sequence rolled over: %s -> %s (last sequence %s)",
            counter.current_year, year, counter.current_sequence,
        )
        counter.current_year = year
        counter.current_sequence = 1
    else:
        counter.current_sequence += 1

    db.flush()
    return format_job_id(year, counter.current_sequence)


def allocate_job_id(db: Session, today: date | None = None) -> str:
    """Allocate a job id in its own short transaction."""
    with unit_of_work(db):
        job_id = next_job_id(db, today=today)
    logger.info("Allocated job id %s", job_id)
    return job_id


def ensure_counter(db: Session, today: date | None = None) -> JobIdCounter:
    """Create the counter row at sequence 0 if it does not exist yet.

    The initial migration inserts the same row; the seed script calls this
    for databases built another way. With the row present every allocation
    takes the locked update path.
    """
    counter = db.get(JobIdCounter, COUNTER_ROW_ID)
    if counter is None:
        counter = JobIdCounter(
            id=COUNTER_ROW_ID,
            current_year=(today or date.today()).year,
            current_sequence=0,
        )
        db.add(counter)
        db.flush()
    return counter

"""Tests for job id allocation.

Tests:
  1. test_format_pads_to_four_digits        - PAR-2026-0007
  2. test_format_widens_past_9999           - sequence 10000 is not truncated
  3. test_format_custom_prefix
  4. test_sequential_allocation_is_gapless  - 1, 2, 3 within a year
  5. test_year_rollover_restarts_sequence   - first id of a new year is 0001
  6. test_failed_unit_of_work_does_not_consume_id
  7. test_concurrent_allocation_is_unique   - parallel sessions, no duplicates
  8. test_counter_row_starts_at_zero        - install-time row, first id is 0001
  9. test_ensure_counter_is_idempotent
"""
import threading
from datetime import date

import pytest

from par_tracker.db.session import unit_of_work
from par_tracker.models.job_id import COUNTER_ROW_ID, JobIdCounter
from par_tracker.services.job_id import (
    allocate_job_id,
    ensure_counter,
    format_job_id,
    next_job_id,
)


# ─── Formatting ───────────────────────────────────────────────────────────────

def test_format_pads_to_four_digits():
    assert format_job_id(2026, 7) == "PAR-2026-0007"


def test_format_widens_past_9999():
    assert format_job_id(2026, 10000) == "PAR-2026-10000"


def test_format_custom_prefix():
    assert format_job_id(2027, 12, prefix="HR") == "HR-2027-0012"


# ─── Allocation ───────────────────────────────────────────────────────────────

def test_sequential_allocation_is_gapless(db):
    """Ids within one year increase by exactly one."""
    today = date(2026, 3, 1)
    ids = [allocate_job_id(db, today=today) for _ in range(3)]
    assert ids == ["PAR-2026-0001", "PAR-2026-0002", "PAR-2026-0003"]


def test_year_rollover_restarts_sequence(db):
    """The first allocation in a new calendar year starts again at 0001."""
    allocate_job_id(db, today=date(2026, 12, 31))
    allocate_job_id(db, today=date(2026, 12, 31))

    assert allocate_job_id(db, today=date(2027, 1, 1)) == "PAR-2027-0001"
    assert allocate_job_id(db, today=date(2027, 1, 2)) == "PAR-2027-0002"

    counter = db.get(JobIdCounter, COUNTER_ROW_ID)
    assert counter.current_year == 2027
    assert counter.current_sequence == 2


def test_failed_unit_of_work_does_not_consume_id(db):
    """A rolled-back transaction leaves the counter where it was."""
    today = date(2026, 5, 5)
    allocate_job_id(db, today=today)

    with pytest.raises(RuntimeError):
        with unit_of_work(db):
            next_job_id(db, today=today)
            raise RuntimeError("insert failed")

    assert allocate_job_id(db, today=today) == "PAR-2026-0002"


def test_concurrent_allocation_is_unique(session_factory):
    """Allocators in separate sessions never receive the same id."""
    today = date(2026, 9, 1)
    workers = 8
    per_worker = 5
    results: list[str] = []
    errors: list[BaseException] = []
    lock = threading.Lock()

    def worker():
        session = session_factory()
        try:
            for _ in range(per_worker):
                job_id = allocate_job_id(session, today=today)
                with lock:
                    results.append(job_id)
        except BaseException as exc:  # surfaced below
            with lock:
                errors.append(exc)
        finally:
            session.close()

    threads = [threading.Thread(target=worker) for _ in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert len(results) == workers * per_worker
    assert len(set(results)) == len(results)
    expected = {format_job_id(2026, n) for n in range(1, workers * per_worker + 1)}
    assert set(results) == expected


def test_counter_row_starts_at_zero(db):
    """The row exists before any allocation, so no allocator has to insert it."""
    counter = db.get(JobIdCounter, COUNTER_ROW_ID)
    assert counter is not None
    assert counter.current_sequence == 0

    assert allocate_job_id(db, today=date(counter.current_year, 6, 1)).endswith("-0001")


def test_ensure_counter_is_idempotent(db):
    today = date(2026, 4, 1)
    allocate_job_id(db, today=today)
    allocate_job_id(db, today=today)

    with unit_of_work(db):
        counter = ensure_counter(db, today=date(2030, 1, 1))

    assert counter.current_year == 2026
    assert counter.current_sequence == 2
    assert allocate_job_id(db, today=today) == "PAR-2026-0003"

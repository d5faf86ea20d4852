"""Seed script: creates the default approval chain and a sample draft request.

Idempotent: approvers are matched by name, the sample request by its
replaced person.
Run: python scripts/seed.py
"""
from datetime import date

from sqlalchemy import select
from sqlalchemy.orm import Session

from par_tracker.db.session import get_engine, get_session_factory, unit_of_work
from par_tracker.models.approver import Approver
from par_tracker.models.request import ParRequest
from par_tracker.services import approvers as approvers_svc
from par_tracker.services import requests as requests_svc
from par_tracker.services.job_id import ensure_counter

DEFAULT_CHAIN = [
    ("Roger Holt", "Director of Human Resources"),
    ("Meaghan Brennan", "Director of Business & Finance"),
    ("Dr. Jessilene Corbett", "Assistant Superintendent"),
    ("Dr. Corey Miklus", "Superintendent"),
]

SAMPLE_REQUEST = {
    "position": "Grade 3 Teacher",
    "location": "Lincoln Elementary",
    "fund_line": "10-1100-110",
    "request_type": "REPLACEMENT",
    "employment_type": "FULL_TIME",
    "position_duration": "REGULAR",
    "start_date": date(2026, 8, 24),
    "replaced_person": "Sample Retiree",
}


# ─── Upsert helpers ───────────────────────────────────────────────────────────

def _upsert_approver(db: Session, name: str, title: str) -> Approver:
    approver = db.execute(select(Approver).where(Approver.name == name)).scalars().first()
    if approver:
        print(f"  [skip] Approver {name}")
        return approver
    approver = approvers_svc.create_approver(db, name=name, title=title, changed_by="seed")
    print(f"  [new]  Approver {name} (#{approver.sort_order})")
    return approver


def _upsert_sample_request(db: Session) -> ParRequest:
    existing = db.execute(
        select(ParRequest).where(ParRequest.replaced_person == SAMPLE_REQUEST["replaced_person"])
    ).scalars().first()
    if existing:
        print(f"  [skip] Request {existing.job_id}")
        return existing
    request = requests_svc.create_request(db, SAMPLE_REQUEST, created_by="seed")
    print(f"  [new]  Request {request.job_id} (DRAFT)")
    return request


def seed() -> None:
    SessionLocal = get_session_factory()

    with SessionLocal() as db:
        print("\n── Approval chain ──")
        for name, title in DEFAULT_CHAIN:
            _upsert_approver(db, name, title)

        print("\n── Job id counter ──")
        with unit_of_work(db):
            counter = ensure_counter(db)
        print(f"  {counter.current_year}: last sequence {counter.current_sequence}")

        print("\n── Sample request ──")
        _upsert_sample_request(db)

    get_engine().dispose()
    print("\n✓ Seed complete.")
    print("  Approvers: " + " → ".join(name for name, _ in DEFAULT_CHAIN))


if __name__ == "__main__":
    seed()

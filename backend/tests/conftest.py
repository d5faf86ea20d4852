"""Shared fixtures: a throwaway SQLite database per test and roster/request factories."""
from datetime import date

import pytest

import par_tracker.models  # noqa: F401  register tables
from par_tracker.core.limiter import limiter
from par_tracker.db.base import Base
from par_tracker.db.session import get_session, make_engine, make_session_factory, unit_of_work
from par_tracker.main import app
from par_tracker.services import approvers as approvers_svc
from par_tracker.services import requests as requests_svc
from par_tracker.services.job_id import ensure_counter

limiter.enabled = False

DEFAULT_ROSTER = [
    ("Roger Holt", "Director of Human Resources"),
    ("Meaghan Brennan", "Director of Business & Finance"),
    ("Dr. Jessilene Corbett", "Assistant Superintendent"),
    ("Dr. Corey Miklus", "Superintendent"),
]


@pytest.fixture
def engine(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'par.db'}")
    Base.metadata.create_all(engine)
    # Same counter row the initial migration inserts
    with make_session_factory(engine)() as session, unit_of_work(session):
        ensure_counter(session)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def api(session_factory):
    """Route the app's session dependency to the test database."""

    def _override():
        session = session_factory()
        try:
            yield session
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    app.dependency_overrides[get_session] = _override
    try:
        yield app
    finally:
        app.dependency_overrides.clear()


# ─── Factories ────────────────────────────────────────────────────────────────

def make_roster(db, roster=None):
    """Create approvers in order and return them."""
    return [
        approvers_svc.create_approver(db, name=name, title=title)
        for name, title in (roster or DEFAULT_ROSTER)
    ]


def make_request(db, created_by="Pat Principal", **overrides):
    data = {
        "position": "Grade 3 Teacher",
        "location": "Lincoln Elementary",
        "fund_line": "10-1100-110",
        "request_type": "REPLACEMENT",
        "employment_type": "FULL_TIME",
        "position_duration": "REGULAR",
        "new_employee_name": "Jordan Lee",
        "start_date": date(2026, 8, 24),
        "replaced_person": "Sam Rivera",
        "notes": None,
    }
    data.update(overrides)
    return requests_svc.create_request(db, data, created_by=created_by)


@pytest.fixture
def roster(db):
    return make_roster(db)

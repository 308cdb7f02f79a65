"""Shared fixtures for the mission order backend tests.

DATABASE_URL is pinned to SQLite before any crewtech module is imported so
the module-level engine never points at PostgreSQL. Tests that need real
tables get their own in-memory engine on a StaticPool (one connection shared
across the TestClient worker threads).
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"

from datetime import datetime, timezone
from typing import Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from crewtech.db import get_db
from crewtech.main import build_app
from crewtech.models import Base
from crewtech.routers.missions import get_workflow
from crewtech.services.notifications import RecordingDispatcher, SqlNotificationDispatcher
from crewtech.services.store import InMemoryMissionStore, SqlMissionStore
from crewtech.services.workflow import Actor, MissionWorkflow


NOW = datetime(2026, 3, 10, 9, 0, tzinfo=timezone.utc)

ADMIN_HEADERS = {"X-Actor-Id": "admin-1", "X-Actor-Role": "admin", "X-Actor-Name": "Ops Desk"}
CREW_HEADERS = {"X-Actor-Id": "crew-1", "X-Actor-Role": "crew", "X-Actor-Name": "Jane Pilot"}
OTHER_CREW_HEADERS = {"X-Actor-Id": "crew-2", "X-Actor-Role": "crew"}


class FixedClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def make_payload(
    type: str = "freelance",
    crew_type: str = "freelancer",
    position: str = "Captain",
    registration: str = "F-HDEF",
    start: str = "2026-03-01",
    end: str = "2026-03-03",
    billing: Optional[dict] = None,
    **overrides,
) -> dict:
    """Creation payload; contract overrides go in `contract={...}`."""
    contract = {
        "start_date": start,
        "end_date": end,
        "salary_type": "daily",
        "has_per_diem": True,
    }
    contract.update(overrides.pop("contract", {}))
    payload = {
        "type": type,
        "crew": {
            "id": "crew-1",
            "name": "Jane Pilot",
            "position": position,
            "type": crew_type,
            "email": "jane@example.com",
        },
        "aircraft": {"registration": registration, "type": "Citation CJ3"},
        "flights": [{"flight": "CT101", "departure": "LFPB", "arrival": "LSGG", "flight_date": start}],
        "contract": contract,
    }
    if billing is not None:
        payload["billing"] = billing
    payload.update(overrides)
    return payload


BILLING = {
    "owner_email": "owner@example.com",
    "subject": "Crew costs",
    "margin": {"enabled": True, "type": "percentage", "value": 20},
}


# ---------------------------------------------------------------------------
# Actors / workflow
# ---------------------------------------------------------------------------


@pytest.fixture
def admin():
    return Actor(id="admin-1", role="admin", name="Ops Desk")


@pytest.fixture
def crew():
    return Actor(id="crew-1", role="crew", name="Jane Pilot")


@pytest.fixture
def other_crew():
    return Actor(id="crew-2", role="crew", name="John Copilot")


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def memory_store():
    return InMemoryMissionStore()


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture
def workflow(memory_store, dispatcher, clock):
    return MissionWorkflow(memory_store, dispatcher, clock)


@pytest.fixture
def drive(workflow, admin, crew):
    """Create a mission and walk it forward to the requested status."""
    steps = [
        ("approved", lambda mid: workflow.approve(admin, mid)),
        ("pending_execution", lambda mid: workflow.assign_to_crew(admin, mid)),
        ("in_progress", lambda mid: workflow.start_execution(crew, mid)),
        ("mission_over", lambda mid: workflow.complete_execution(crew, mid)),
        ("pending_validation", lambda mid: workflow.request_validation(admin, mid)),
        ("validated", lambda mid: workflow.validate(crew, mid, {"rib_confirmed": True})),
    ]

    def _drive(status: str, **payload_kwargs):
        mission = workflow.create(admin, make_payload(**payload_kwargs)).mission
        if status == "pending_approval":
            return mission
        for name, step in steps:
            mission = step(mission.id).mission
            if name == status:
                return mission
        raise ValueError(f"cannot drive a mission to {status}")

    return _drive


# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def client(session_factory, clock):
    app = build_app()

    def _workflow():
        return MissionWorkflow(
            SqlMissionStore(session_factory),
            SqlNotificationDispatcher(session_factory),
            clock,
        )

    def _db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_workflow] = _workflow
    app.dependency_overrides[get_db] = _db
    with TestClient(app) as c:
        yield c

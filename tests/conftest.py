"""
Pytest Configuration and Shared Fixtures
========================================

This module provides shared fixtures for all MedCare tests.
Fixtures include a fake clock, an in-memory document store, a recording
notification sink, the tracker, the reminder scheduler and the API client.
"""

import os
import sys
from datetime import datetime, date, timedelta
from typing import Any, Dict, Generator, List, Optional

import pytest
from fastapi.testclient import TestClient

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Keep the module-level engine off the on-disk database
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

from actions.reminder_engine import ReminderScheduler
from api.deps import get_tracker, get_scheduler, get_optional_scheduler
from models import AdherenceStatus, Intake, Medicine
from services.tracker_service import TrackerService
from tools.document_store import InMemoryDocumentStore
from tools.notification_service import NotificationEvent, NotificationKind, NotificationSink
from app import app


FIXED_NOW = datetime(2024, 3, 15, 12, 0)
TODAY = FIXED_NOW.date()


# ==================== CLOCK ====================

class FakeClock:
    """Callable clock that only moves when told to"""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def set(self, hour: int, minute: int, on_date: Optional[date] = None) -> datetime:
        on_date = on_date or self.now.date()
        self.now = datetime(on_date.year, on_date.month, on_date.day, hour, minute)
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(FIXED_NOW)


# ==================== NOTIFICATION FIXTURES ====================

class RecordingSink(NotificationSink):
    """Sink that keeps every event; can be told to fail"""

    def __init__(self, result: bool = True, error: Optional[Exception] = None):
        self.events: List[NotificationEvent] = []
        self.result = result
        self.error = error
        self.closed = False

    async def send(self, event: NotificationEvent) -> bool:
        self.events.append(event)
        if self.error is not None:
            raise self.error
        return self.result

    async def aclose(self) -> None:
        self.closed = True

    def of_kind(self, kind: NotificationKind) -> List[NotificationEvent]:
        return [e for e in self.events if e.kind == kind]


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


# ==================== TRACKER FIXTURES ====================

@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def tracker(store: InMemoryDocumentStore, clock: FakeClock) -> TrackerService:
    return TrackerService(store=store, clock=clock)


@pytest.fixture
def scheduler(tracker: TrackerService, sink: RecordingSink, clock: FakeClock) -> ReminderScheduler:
    return ReminderScheduler(
        tracker,
        sink,
        clock=clock,
        tick_seconds=60,
        escalation_delay=timedelta(minutes=30),
        enabled=True
    )


# ==================== SAMPLE DATA FIXTURES ====================

def _make_medicine(**overrides) -> Medicine:
    data = {
        "name": "Metformin",
        "dosage": "500mg",
        "times": ["08:00"],
        "instructions": "Take with breakfast",
        "start_date": TODAY - timedelta(days=30),
    }
    data.update(overrides)
    return Medicine(**data)


def _make_intake(medicine: Medicine, on_date: date, time: str,
                 status: AdherenceStatus = AdherenceStatus.TAKEN, **overrides) -> Intake:
    data = {
        "medicine_id": medicine.id,
        "date": on_date,
        "time": time,
        "status": status,
        "timestamp": datetime.combine(on_date, datetime.min.time()) + timedelta(hours=int(time[:2])),
    }
    data.update(overrides)
    return Intake(**data)


@pytest.fixture
def medicine_factory():
    """Build Medicine records with sensible defaults"""
    return _make_medicine


@pytest.fixture
def intake_factory():
    """Build Intake records for a medicine slot"""
    return _make_intake


@pytest.fixture
def sample_medicine_data() -> Dict[str, Any]:
    """Request payload for adding a medicine"""
    return {
        "name": "Lisinopril",
        "dosage": "10mg",
        "frequency": "twice daily",
        "times": ["20:00", "08:00"],
        "instructions": "Take with water",
        "start_date": str(TODAY - timedelta(days=7)),
    }


@pytest.fixture
def sample_profile_data() -> Dict[str, Any]:
    return {
        "name": "Jane Doe",
        "age": 67,
        "health_condition": "Hypertension",
        "emergency_contact": "+1 555 0100",
        "caregiver_email": "caregiver@example.com",
        "doctor_name": "Dr. Smith",
        "doctor_phone": "+1 555 0199",
    }


# ==================== API FIXTURES ====================

@pytest.fixture(scope="function")
def client(tracker: TrackerService, scheduler: ReminderScheduler) -> Generator[TestClient, None, None]:
    """
    FastAPI test client wired to the test tracker and scheduler.

    The client is used without a `with` block so the lifespan (database
    init, hydration, background loop) does not run.
    """
    app.dependency_overrides[get_tracker] = lambda: tracker
    app.dependency_overrides[get_scheduler] = lambda: scheduler
    app.dependency_overrides[get_optional_scheduler] = lambda: scheduler

    yield TestClient(app)

    app.dependency_overrides.clear()


# ==================== MARKERS ====================

def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "api: mark test as an API test")
    config.addinivalue_line("markers", "database: mark test as requiring database")
